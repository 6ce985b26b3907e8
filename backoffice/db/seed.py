"""Database seeding for approval templates.

Loads approval hierarchies from a YAML file such as::

    templates:
      - topic: expense
        level: 1
        approver_id: u-finance-lead
      - topic: expense
        level: 2
        approver_id: u-sales-head
        context_filter: {dept: sales}
        authority: {amount_max: 50000}

Usage: python -m backoffice.db.seed templates.yaml
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from sqlalchemy import and_
from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.db.models import ApprovalTemplate

logger = get_logger(__name__)

REQUIRED_FIELDS = ("topic", "level", "approver_id")


def parse_template_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalize one template entry.

    Args:
        entry: Template dictionary as read from YAML

    Returns:
        Dictionary of ApprovalTemplate column values

    Raises:
        ValueError: If a required field is missing or malformed
    """
    missing = [name for name in REQUIRED_FIELDS if entry.get(name) in (None, "")]
    if missing:
        raise ValueError(f"Template entry is missing {', '.join(missing)}: {entry}")

    try:
        level = int(entry["level"])
    except (TypeError, ValueError):
        raise ValueError(f"Template level must be an integer, got {entry['level']!r}")

    context_filter = entry.get("context_filter") or {}
    authority = entry.get("authority") or {}
    if not isinstance(context_filter, dict) or not isinstance(authority, dict):
        raise ValueError(f"context_filter and authority must be mappings: {entry}")

    return {
        "topic": str(entry["topic"]),
        "level": level,
        "approver_id": str(entry["approver_id"]),
        "context_filter": context_filter,
        "authority": authority,
        "is_active": bool(entry.get("is_active", True)),
    }


def load_template_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load and parse template entries from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file or an entry is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Template file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("templates") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"{path} must contain a 'templates' list")

    return [parse_template_entry(entry) for entry in entries]


def seed_templates(db: Session, entries: List[Dict[str, Any]]) -> List[ApprovalTemplate]:
    """
    Create approval templates.

    Seeding is idempotent: an entry whose topic, level, approver and filter
    already exist updates that template instead of adding another.

    Args:
        db: Database session
        entries: Parsed template entries

    Returns:
        The created or updated templates
    """
    seeded = []

    for entry in entries:
        candidates = db.query(ApprovalTemplate).filter(
            and_(
                ApprovalTemplate.topic == entry["topic"],
                ApprovalTemplate.level == entry["level"],
                ApprovalTemplate.approver_id == entry["approver_id"],
            )
        ).all()
        existing = next(
            (t for t in candidates if (t.context_filter or {}) == entry["context_filter"]),
            None,
        )

        if existing:
            existing.authority = entry["authority"]
            existing.is_active = entry["is_active"]
            seeded.append(existing)
            continue

        template = ApprovalTemplate(**entry)
        db.add(template)
        seeded.append(template)

    db.flush()
    logger.info("Seeded %d approval template(s)", len(seeded))
    return seeded


def main():
    """Seed templates from the YAML file given on the command line."""
    if len(sys.argv) < 2:
        print("Usage: python -m backoffice.db.seed <templates.yaml>", file=sys.stderr)
        sys.exit(1)

    from backoffice.core.config import get_settings
    from backoffice.core.logging import configure_from_settings
    from backoffice.db.session import SessionLocal

    configure_from_settings(get_settings())

    try:
        entries = load_template_file(sys.argv[1])
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    db = SessionLocal()
    try:
        seeded = seed_templates(db, entries)
        db.commit()
        print(f"Seeded {len(seeded)} approval template(s)")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
