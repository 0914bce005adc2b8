from __future__ import annotations

import json
import textwrap

import pytest
from typer.testing import CliRunner

from writersroom.cli import app
from writersroom.config import STORE_ENV_VAR
from writersroom.edits import parse_edit_payload
from writersroom.store import EditStore


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.delenv(STORE_ENV_VAR, raising=False)
    path = tmp_path / "writersroom.yaml"
    path.write_text(
        textwrap.dedent(
            """
            edits:
              extensible_agents: false
              merge: true
            markup:
              highlight_star_lines: true
            paths:
              store: data/edits.json
            """
        ).strip()
        + "\n",
        encoding="utf-8",
    )
    return path


def _invoke(*args):
    return CliRunner().invoke(app, list(args), catch_exceptions=False)


def test_validate_prints_canonical_payload(config_path, write_json, pigs_payload) -> None:
    payload_path = write_json("edits.json", pigs_payload)

    result = _invoke("validate", str(payload_path), "--config", str(config_path))

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["summary"] == "The pacing is strong, but the wolf's arrival could land harder."
    assert all(edit["anchor"].startswith("writersroom-edit-") for edit in data["edits"])


def test_validate_reports_schema_errors(config_path, write_json, make_edit) -> None:
    payload_path = write_json("bad.json", {"summary": "ok", "edits": [make_edit(line=0)]})

    result = _invoke("validate", str(payload_path), "-c", str(config_path))

    assert result.exit_code == 1
    assert "line must be at least 1" in result.output


def test_validate_lenient_repairs_model_output(config_path, tmp_path) -> None:
    response = tmp_path / "response.md"
    response.write_text(
        'Here are my edits:\n```json\n{"summary": "Fine.", "edits": [{"line": "4", "type": "add", '
        '"category": "pacing", "original_text": "Go.", "output": "Go now.",}]}\n```\n',
        encoding="utf-8",
    )
    out_path = tmp_path / "out" / "canonical.json"

    result = _invoke("validate", str(response), "--lenient", "-o", str(out_path), "-c", str(config_path))

    assert result.exit_code == 0, result.output
    assert "Wrote" in result.output
    data = json.loads(out_path.read_text(encoding="utf-8"))
    assert data["edits"][0]["type"] == "addition"
    assert data["edits"][0]["category"] == "flow"
    assert data["edits"][0]["line"] == 4


def test_validate_agent_mode_flag_overrides_config(config_path, write_json, make_edit) -> None:
    payload_path = write_json("agents.json", {"summary": "ok", "edits": [make_edit(agent="rhythm", category="rhythm")]})

    strict = _invoke("validate", str(payload_path), "-c", str(config_path))
    relaxed = _invoke("validate", str(payload_path), "--extensible-agents", "-c", str(config_path))

    assert strict.exit_code == 1
    assert relaxed.exit_code == 0, relaxed.output
    assert json.loads(relaxed.output)["edits"][0]["agent"] == "rhythm"


def test_merge_combines_payloads(config_path, write_json, make_edit) -> None:
    first = write_json("first.json", {"summary": "One.", "edits": [make_edit(line=1, output="a")]})
    second = write_json("second.json", {"summary": "Two.", "edits": [make_edit(line=2, output="b")]})

    result = _invoke("merge", str(first), str(second), "-c", str(config_path))

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["summary"] == "Two."
    assert [edit["output"] for edit in data["edits"]] == ["a", "b"]


def test_merge_and_resolve_keep_same_line_edits_of_stored_payload(config_path, write_json, make_edit) -> None:
    stored = parse_edit_payload(
        {
            "summary": "Stored.",
            "edits": [
                make_edit(line=5, type="replacement", output="Alpha"),
                make_edit(line=5, type="addition", output="Beta"),
            ],
        },
        combine=False,
    )
    existing = write_json("existing.json", stored.to_dict())
    incoming = write_json("incoming.json", {"summary": "New.", "edits": [make_edit(line=9, output="c")]})

    merged = _invoke("merge", str(existing), str(incoming), "-c", str(config_path))
    resolved = _invoke("resolve", str(existing), stored.edits[1].anchor, "-c", str(config_path))

    assert merged.exit_code == 0, merged.output
    assert [edit["output"] for edit in json.loads(merged.output)["edits"]] == ["Alpha", "Beta", "c"]
    assert resolved.exit_code == 0, resolved.output
    assert [edit["output"] for edit in json.loads(resolved.output)["edits"]] == ["Alpha"]


def test_resolve_removes_edit_and_rejects_unknown_anchor(config_path, write_json, pigs_payload) -> None:
    payload_path = write_json("edits.json", pigs_payload)
    anchor = parse_edit_payload(pigs_payload).edits[0].anchor

    result = _invoke("resolve", str(payload_path), anchor, "-c", str(config_path))
    missing = _invoke("resolve", str(payload_path), "nope", "-c", str(config_path))

    assert result.exit_code == 0, result.output
    assert anchor not in {edit["anchor"] for edit in json.loads(result.output)["edits"]}
    assert missing.exit_code == 1
    assert "No edit with anchor nope" in missing.output


def test_markup_renders_document(config_path, tmp_path) -> None:
    document = tmp_path / "draft.md"
    document.write_text("⭐ Nice\nA ~~dull~~ +sharp+ line.\n", encoding="utf-8")

    default = _invoke("markup", str(document), "-c", str(config_path))
    plain = _invoke("markup", str(document), "--no-star-lines", "-c", str(config_path))

    assert default.exit_code == 0, default.output
    assert 'data-wr-type="star"' in default.output
    assert 'data-wr-type="subtraction"' in default.output
    assert 'data-wr-type="star"' not in plain.output
    assert 'data-wr-type="addition"' in plain.output


def test_markup_missing_file_is_usage_error(config_path, tmp_path) -> None:
    result = CliRunner().invoke(app, ["markup", str(tmp_path / "absent.md"), "-c", str(config_path)])

    assert result.exit_code == 2
    assert "File not found" in result.output


def test_record_and_status_use_configured_store(config_path, write_json, make_edit) -> None:
    first = write_json("first.json", {"summary": "One.", "edits": [make_edit(line=1, output="a")]})
    second = write_json("second.json", {"summary": "Two.", "edits": [make_edit(line=2, output="b")]})
    store_path = config_path.parent / "data" / "edits.json"

    empty = _invoke("status", "-c", str(config_path))
    assert empty.exit_code == 0, empty.output
    assert "No stored edits." in empty.output

    stored = _invoke("record", "chapters/one.md", str(first), "-c", str(config_path))
    assert stored.exit_code == 0, stored.output
    assert "Stored 1 edit(s) for chapters/one.md." in stored.output
    assert store_path.exists()

    again = _invoke("record", "chapters/one.md", str(first), "-c", str(config_path))
    assert "Edits for chapters/one.md unchanged." in again.output

    merged = _invoke("record", "chapters/one.md", str(second), "-c", str(config_path))
    assert "Stored 2 edit(s) for chapters/one.md." in merged.output

    replaced = _invoke("record", "chapters/one.md", str(first), "--replace", "-c", str(config_path))
    assert "Stored 1 edit(s) for chapters/one.md." in replaced.output

    listing = _invoke("status", "-c", str(config_path))
    assert "- chapters/one.md: 1 edit(s)" in listing.output
    assert len(EditStore.load(store_path)) == 1


def test_invalid_config_exits_with_error(tmp_path) -> None:
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("edits: [unclosed\n", encoding="utf-8")

    result = _invoke("status", "-c", str(config_path))

    assert result.exit_code == 1
    assert "Failed to parse config" in result.output
