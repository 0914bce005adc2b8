from __future__ import annotations

from writersroom.edits import EditType, parse_edit_payload
from writersroom.edits.folding import combine_same_line_edits


def _parse(*edits):
    return parse_edit_payload({"summary": "ok", "edits": list(edits)})


def test_annotation_folds_into_replacement(make_edit) -> None:
    payload = _parse(
        make_edit(line=5, type="replacement", original_text="A dull line.", output="A sharp line."),
        make_edit(line=5, type="annotation", original_text="A dull line.", output="[FLOW: tighten.]"),
    )

    assert len(payload.edits) == 1
    edit = payload.edits[0]
    assert edit.type is EditType.REPLACEMENT
    assert edit.output == "A sharp line."
    assert edit.annotation == "[FLOW: tighten.]"
    assert edit.to_dict()["annotation"] == "[FLOW: tighten.]"


def test_annotations_are_space_joined(make_edit) -> None:
    payload = _parse(
        make_edit(line=2, type="annotation", output="First note."),
        make_edit(line=2, type="subtraction", output=None),
        make_edit(line=2, type="annotation", output="  Second note. "),
    )

    assert len(payload.edits) == 1
    assert payload.edits[0].type is EditType.SUBTRACTION
    assert payload.edits[0].annotation == "First note. Second note."


def test_annotations_without_text_leave_annotation_absent(make_edit) -> None:
    payload = _parse(
        make_edit(line=2, type="addition", output="more"),
        make_edit(line=2, type="annotation", output=None),
    )

    assert payload.edits[0].annotation is None
    assert "annotation" not in payload.edits[0].to_dict()


def test_first_substantive_edit_wins(make_edit) -> None:
    payload = _parse(
        make_edit(line=3, type="addition", output="first"),
        make_edit(line=3, type="replacement", output="second"),
    )

    assert [edit.output for edit in payload.edits] == ["first"]


def test_annotation_only_line_keeps_first_annotation(make_edit) -> None:
    payload = _parse(
        make_edit(line=4, type="annotation", output="one"),
        make_edit(line=4, type="annotation", output="two"),
    )

    assert len(payload.edits) == 1
    assert payload.edits[0].output == "one"
    assert payload.edits[0].annotation is None


def test_line_order_follows_first_appearance(make_edit) -> None:
    payload = _parse(
        make_edit(line=9, output="nine"),
        make_edit(line=2, output="two"),
        make_edit(line=9, type="annotation", output="note"),
        make_edit(line=5, output="five"),
    )

    assert [edit.line for edit in payload.edits] == [9, 2, 5]
    assert payload.edits[0].annotation == "note"


def test_combiner_never_invents_records(make_edit) -> None:
    parsed = _parse(make_edit(line=1), make_edit(line=2, output="x")).edits

    combined = combine_same_line_edits(parsed)

    assert combined == list(parsed)
    assert combine_same_line_edits([]) == []
