"""
Derivation of the code-signing file manifest.

The manifest is built in two phases: the primary list is frozen into a
snapshot first, then companion files are derived from that snapshot only.
Derived entries are never fed back into the companion rule.
"""

from collections.abc import Callable, Iterable, Sequence
import json
from pathlib import Path
import xml.etree.ElementTree as ET

from pyvider.telemetry import logger

from ..exceptions import DerivationFailure, ValidationError
from ..models import (
    DerivationFailureRecord,
    SigningCategory,
    SigningEntry,
    SigningManifest,
)

CompanionRule = Callable[[str], str | None]

DEFAULT_BINARY_EXTENSIONS: tuple[str, ...] = (".dll", ".exe")


def suffix_rule(old: str, new: str, *, case_sensitive: bool = False) -> CompanionRule:
    """Returns a rule replacing a trailing `old` suffix with `new`."""
    if not old:
        raise ValidationError("Companion rule suffix to replace must not be empty.")

    def rule(path: str) -> str | None:
        matches = (
            path.endswith(old) if case_sensitive else path.lower().endswith(old.lower())
        )
        if not matches:
            return None
        return path[: -len(old)] + new

    return rule


def _derive_companions(
    snapshot: tuple[str, ...], companion_rule: CompanionRule, strict: bool
) -> tuple[dict[str, str], tuple[DerivationFailureRecord, ...]]:
    companions: dict[str, str] = {}
    failures: list[DerivationFailureRecord] = []
    for path in snapshot:
        try:
            companion = companion_rule(path)
        except Exception as e:
            if strict:
                raise DerivationFailure(path, str(e)) from e
            logger.warning("Companion derivation failed", path=path, error=str(e))
            failures.append(DerivationFailureRecord(path, str(e)))
            continue
        if companion is not None:
            companions[path] = companion
    return companions, tuple(failures)


def build_manifest(
    primary_sources: Iterable[str],
    companion_rule: CompanionRule,
    *,
    strict: bool = False,
) -> SigningManifest:
    """
    Builds the signing manifest for `primary_sources` and their companions.

    In the default lenient mode a rule that raises for a path is recorded in
    `SigningManifest.failures` and that path gets no companion. With
    `strict=True` the first failure raises `DerivationFailure`.
    """
    snapshot = tuple(dict.fromkeys(primary_sources))
    companions, failures = _derive_companions(snapshot, companion_rule, strict)

    primary_paths = frozenset(snapshot)
    emitted: set[str] = set()
    entries: list[SigningEntry] = []
    for path in snapshot:
        entries.append(SigningEntry(path, SigningCategory.PRIMARY))
        companion = companions.get(path)
        if companion is None or companion in primary_paths or companion in emitted:
            continue
        emitted.add(companion)
        entries.append(SigningEntry(companion, SigningCategory.DERIVED))

    logger.info(
        "Built signing manifest",
        primary=len(snapshot),
        derived=len(emitted),
        failures=len(failures),
    )
    return SigningManifest(entries, failures)


def _matches_extension(path: str, extensions: Sequence[str]) -> bool:
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


def _sources_from_xml(text: str) -> list[str]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ValidationError(f"Signing configuration is not valid XML: {e}") from e
    return [node.get("src", "") for node in root.iter("file")]


def _sources_from_json(text: str) -> list[str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Signing configuration is not valid JSON: {e}") from e
    files = data.get("files") if isinstance(data, dict) else None
    if not isinstance(files, list):
        raise ValidationError("Signing configuration must contain a 'files' list.")
    return [item.get("src", "") if isinstance(item, dict) else "" for item in files]


def select_primary_sources(
    document: str | Path,
    extensions: Sequence[str] = DEFAULT_BINARY_EXTENSIONS,
) -> tuple[str, ...]:
    """
    Extracts the ordered binary paths from a signing configuration document.

    `document` is either a path to an XML/JSON file or the document text.
    """
    if isinstance(document, Path):
        if not document.is_file():
            raise ValidationError(f"Signing configuration not found at: {document}")
        document = document.read_text(encoding="utf-8")

    text = document.strip()
    if text.startswith("<"):
        sources = _sources_from_xml(text)
    elif text.startswith("{"):
        sources = _sources_from_json(text)
    else:
        raise ValidationError("Signing configuration must be an XML or JSON document.")

    if any(not src for src in sources):
        raise ValidationError("Signing configuration has a file entry without 'src'.")

    selected = tuple(src for src in sources if _matches_extension(src, extensions))
    logger.debug(
        "Selected primary signing sources", total=len(sources), selected=len(selected)
    )
    return selected
