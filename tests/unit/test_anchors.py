from __future__ import annotations

import re

from writersroom.edits.anchors import (
    ANCHOR_PREFIX,
    create_anchor_id,
    find_anchor_candidate,
    hash_anchor_seed,
)


def test_hash_matches_reference_fnv1a_values() -> None:
    # 0xe40c292c is the published 32-bit FNV-1a digest of "a".
    assert hash_anchor_seed("a") == "1r9wi7g"
    assert hash_anchor_seed("") == "ztntfp"


def test_hash_is_lowercase_base36() -> None:
    digest = hash_anchor_seed("The wolf came.|The wolf came, breath steaming.|replacement|sensory|4|1")

    assert re.fullmatch(r"[0-9a-z]{1,7}", digest)


def test_create_anchor_id_is_pure() -> None:
    kwargs = dict(
        line=7,
        type="addition",
        category="flow",
        original_text="Original text",
        output="Added text",
        index=0,
    )

    assert create_anchor_id(**kwargs) == create_anchor_id(**kwargs)
    assert create_anchor_id(**kwargs) == f"{ANCHOR_PREFIX}1w0tlqr"


def test_create_anchor_id_varies_with_index_and_output() -> None:
    base = dict(line=3, type="annotation", category="rhythm", original_text="Ran.", output=None, index=0)

    first = create_anchor_id(**base)
    moved = create_anchor_id(**{**base, "index": 1})
    noted = create_anchor_id(**{**base, "output": "[RHYTHM: vary length.]"})

    assert len({first, moved, noted}) == 3


def test_caller_anchor_wins_over_content() -> None:
    anchor = create_anchor_id(
        line=1,
        type="star",
        category="punch",
        original_text="Bell.",
        output=None,
        index=4,
        anchor="  keep-me  ",
    )

    assert anchor == "keep-me"


def test_find_anchor_candidate_priority() -> None:
    assert find_anchor_candidate({"id": "d", "anchor_id": "c", "anchorId": "b", "anchor": "a"}) == "a"
    assert find_anchor_candidate({"id": "d", "anchor_id": "c", "anchorId": " "}) == "c"
    assert find_anchor_candidate({"id": "d", "anchor": 12}) == "d"
    assert find_anchor_candidate({}) == ""
