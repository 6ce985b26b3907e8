"""Tests for seeding approval templates from YAML."""

import pytest

from backoffice.db.models import ApprovalTemplate
from backoffice.db.seed import load_template_file, parse_template_entry, seed_templates


TEMPLATES_YAML = """
templates:
  - topic: expense
    level: 1
    approver_id: U1
  - topic: expense
    level: "2"
    approver_id: U2
    context_filter: {dept: sales}
    authority: {amount_max: 50000}
"""


@pytest.fixture
def template_file(tmp_path):
    path = tmp_path / "templates.yaml"
    path.write_text(TEMPLATES_YAML)
    return path


class TestParseTemplateEntry:
    """Tests for parse_template_entry."""

    def test_defaults(self):
        entry = parse_template_entry({"topic": "expense", "level": 1, "approver_id": "U1"})

        assert entry == {
            "topic": "expense",
            "level": 1,
            "approver_id": "U1",
            "context_filter": {},
            "authority": {},
            "is_active": True,
        }

    @pytest.mark.parametrize("field", ["topic", "level", "approver_id"])
    def test_missing_required_field(self, field):
        entry = {"topic": "expense", "level": 1, "approver_id": "U1"}
        del entry[field]
        with pytest.raises(ValueError, match=field):
            parse_template_entry(entry)

    def test_non_integer_level(self):
        with pytest.raises(ValueError, match="integer"):
            parse_template_entry({"topic": "expense", "level": "first", "approver_id": "U1"})

    def test_filter_must_be_mapping(self):
        with pytest.raises(ValueError):
            parse_template_entry({
                "topic": "expense", "level": 1, "approver_id": "U1", "context_filter": ["sales"],
            })


class TestLoadTemplateFile:
    """Tests for load_template_file."""

    def test_load(self, template_file):
        entries = load_template_file(template_file)

        assert [(e["level"], e["approver_id"]) for e in entries] == [(1, "U1"), (2, "U2")]
        assert entries[1]["context_filter"] == {"dept": "sales"}
        assert entries[1]["authority"] == {"amount_max": 50000}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_template_file(tmp_path / "nope.yaml")

    @pytest.mark.parametrize("content", ["", "templates: expense", "- topic: expense"])
    def test_no_templates_list(self, tmp_path, content):
        path = tmp_path / "bad.yaml"
        path.write_text(content)
        with pytest.raises(ValueError, match="templates"):
            load_template_file(path)


@pytest.mark.db
class TestSeedTemplates:
    """Tests for seed_templates."""

    def test_creates_templates(self, db_session, template_file):
        seeded = seed_templates(db_session, load_template_file(template_file))

        assert len(seeded) == 2
        assert db_session.query(ApprovalTemplate).count() == 2

    def test_idempotent(self, db_session, template_file):
        entries = load_template_file(template_file)
        seed_templates(db_session, entries)

        entries[1]["authority"] = {"amount_max": 75000}
        seed_templates(db_session, entries)

        assert db_session.query(ApprovalTemplate).count() == 2
        level_two = db_session.query(ApprovalTemplate).filter_by(level=2).one()
        assert level_two.authority == {"amount_max": 75000}

    def test_same_approver_with_other_filter_is_new(self, db_session, template_file):
        entries = load_template_file(template_file)
        seed_templates(db_session, entries)

        seed_templates(db_session, [dict(entries[1], context_filter={"dept": "service"})])

        assert db_session.query(ApprovalTemplate).filter_by(level=2).count() == 2
