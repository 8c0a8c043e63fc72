"""Rule set loading.

A rules directory holds::

    prompt.base.txt        system directive for analysis
    schema.verify.json     JSON response schema
    doc_rules.json         doc type -> checklist, fields, validators
    context/fees.json      fee table (optional)

The default set ships inside the package; ``settings.rules_dir`` or an
explicit path overrides it.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from docverify.config import settings
from docverify.errors import RulesUnavailable
from docverify.models import DocTypeRules, FeeTable, RuleSet

logger = logging.getLogger(__name__)

DEFAULT_RULES_DIR = Path(__file__).parent / "data"

PROMPT_FILE = "prompt.base.txt"
SCHEMA_FILE = "schema.verify.json"
DOC_RULES_FILE = "doc_rules.json"
FEES_FILE = Path("context") / "fees.json"


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RulesUnavailable(
            f"Could not read {path.name}",
            details={"path": str(path), "reason": str(exc)},
        ) from exc


def resolve_rules_dir(rules_dir: Optional[Union[str, Path]] = None) -> Path:
    """Explicit directory, then settings override, then packaged defaults."""
    if rules_dir:
        return Path(rules_dir)
    if settings.rules_dir:
        return Path(settings.rules_dir)
    return DEFAULT_RULES_DIR


def load_fees(directory: Path) -> FeeTable:
    """Load the fee table; a missing or broken file gives an empty table."""
    path = directory / FEES_FILE
    if not path.exists():
        return FeeTable()
    try:
        return FeeTable.model_validate(_read_json(path))
    except (RulesUnavailable, ValidationError) as e:
        logger.warning("Fee table ignored: %s", e)
        return FeeTable()


def load_rules(rules_dir: Optional[Union[str, Path]] = None) -> RuleSet:
    """Load a complete rule set.

    Raises:
        RulesUnavailable: If the prompt, schema or doc rules cannot be read.
    """
    directory = resolve_rules_dir(rules_dir)

    try:
        base_prompt = (directory / PROMPT_FILE).read_text(encoding="utf-8")
    except OSError as exc:
        raise RulesUnavailable(
            f"Could not read {PROMPT_FILE}",
            details={"path": str(directory), "reason": str(exc)},
        ) from exc

    schema = _read_json(directory / SCHEMA_FILE)
    raw_rules = _read_json(directory / DOC_RULES_FILE)
    if not isinstance(raw_rules, dict):
        raise RulesUnavailable(f"{DOC_RULES_FILE} must be an object")

    try:
        doc_types = {
            key: DocTypeRules.model_validate(value) for key, value in raw_rules.items()
        }
    except ValidationError as exc:
        raise RulesUnavailable(
            f"Invalid {DOC_RULES_FILE}", details={"reason": str(exc)}
        ) from exc

    rules = RuleSet(
        name=directory.name,
        base_prompt=base_prompt.strip(),
        schema=schema,
        doc_types=doc_types,
        fees=load_fees(directory),
    )
    logger.debug(
        "Loaded rules from %s: %d doc types, %d fee items",
        directory,
        len(rules.doc_types),
        len(rules.fees.items),
    )
    return rules
