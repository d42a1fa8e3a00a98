"""
The `packaging` sub-package contains the transformations from build-tree facts
to packaging inputs.

This includes:
- Assembling RPM spec documents from ordered fragments.
- Aggregating staged file sizes into installed-size metadata.
- Deriving the signing manifest, including debug-symbol companion files.
"""
