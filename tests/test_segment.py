import pytest

from pdf_segment import (
    extract_unit_body,
    fallback_extract_units,
    get_unit_content,
    pre_normalize_heading_line,
    split_into_units,
)

SAMPLE = "Unit 1 - Basics\nContent one.\n\nUnit 2 - Advanced\nContent two."


def test_split_into_units_keys_and_bodies():
    sections = split_into_units(SAMPLE)
    assert list(sections) == ["Unit 1", "Unit 2"]
    assert sections["Unit 1"].content == "Content one."
    assert sections["Unit 2"].content == "Content two."
    assert sections["Unit 1"].title == "Unit 1 - Basics"
    assert "Unit 2" not in sections["Unit 2"].content


def test_text_before_first_heading_is_dropped():
    sections = split_into_units("Preface words\nUnit 1\nBody text")
    assert sections["Unit 1"].content == "Body text"
    assert all("Preface" not in s.content for s in sections.values())


def test_ocr_corrupted_headings_are_recognised():
    sections = split_into_units("Un1t 4 Cells\nCell body.\nChaptr 5 Tissues\nTissue body.")
    assert sections["Unit 4"].content == "Cell body."
    assert sections["Chapter 5"].content == "Tissue body."


def test_heading_keys_are_capitalised():
    sections = split_into_units("UNIT 3: Forces\nPush and pull.")
    assert sections["Unit 3"].title == "Unit 3 - Forces"


def test_repeated_heading_without_body_keeps_earlier_content():
    sections = split_into_units("Unit 1\nReal content.\nUnit 1")
    assert sections["Unit 1"].content == "Real content."


def test_pre_normalize_heading_line():
    assert pre_normalize_heading_line("  UnIt   7  ") == "Unit 7"
    assert pre_normalize_heading_line("Chapr 2") == "Chapter 2"


def test_no_headings_gives_empty_map():
    assert split_into_units("just prose\nwith no markers") == {}
    assert split_into_units("") == {}


def test_fallback_extract_units_inline():
    sections = fallback_extract_units("See Unit 1 for basics and Unit 2 for more.")
    assert sections["Unit 1"].content == "Unit 1 for basics and"
    assert sections["Unit 2"].content == "Unit 2 for more."


def test_fallback_window_is_bounded():
    sections = fallback_extract_units("Unit 9 " + "x" * 100, window=20)
    assert len(sections["Unit 9"].content) <= 20


def test_get_unit_content_picks_requested_unit():
    content = get_unit_content(SAMPLE, 2)
    assert "Content two." in content
    assert "Content one." not in content


def test_get_unit_content_last_unit_runs_to_end():
    text = (
        "Introduction\nUnit 1 - Basics\nThis is content for unit one.\n\n"
        "Unit 2 - Advanced\nContent two.\n\n"
        "Unit 3 - Deep Dive\nHere is unit three content numbering and examples.\nMore lines."
    )
    content = get_unit_content(text, 3)
    assert "unit three" in content
    assert "Content two." not in content


def test_get_unit_content_lesson_heading():
    assert get_unit_content("Lesson 5 Fractions\nHalves and quarters.", 5) == "Halves and quarters."


def test_get_unit_content_not_found():
    assert get_unit_content("no headings at all here", 4) is None


def test_title_anchor_used_when_first_mention_is_past_front_matter():
    front = "Preface paragraph. " * 60
    text = (
        front + "\n\nUnit 2 Energy in Living Systems\n\nPlants capture light and store it as sugar.\n\n"
        "Unit 3 Genetics\n\nGenes carry information."
    )

    result = extract_unit_body(text, 2)
    assert result.startswith("Energy in Living Systems")
    assert "Plants capture light" in result
    assert "Genes" not in result


def test_body_located_past_table_of_contents():
    toc = "Contents\n\nUnit 1 Foundations of Biology 3\n\nUnit 2 Energy in Living Systems 27\n\n"
    filler = "Preface paragraph. " * 70
    body = (
        "\n\n2.1 Energy in Living Systems\n\nPlants capture light and store it as sugar.\n\n"
        "Unit 3 Genetics\n\nGenes carry information."
    )
    text = toc + filler + body

    result = extract_unit_body(text, 2)
    assert result.startswith("2.1 Energy in Living Systems")
    assert "Plants capture light" in result
    assert "Genes" not in result
    assert "Contents" not in result


def test_title_reused_in_later_unit_does_not_move_anchor():
    text = (
        "Unit 1 Motion\n\nThings move.\n\nUnit 2 Forces\n\nPush and pull.\n\nUnit 3 Energy\n\n"
        + "Filler sentence. " * 80
        + "\n\nEnergy relates to forces acting on bodies."
    )

    content = get_unit_content(text, 2)
    assert "Push and pull." in content
    assert "acting on bodies" not in content


def test_body_located_by_section_number():
    text = "Overview of the course.\n\n3.1 Cell walls\n\nWalls are rigid.\n\nUnit 4 Next\n\nOther."
    assert extract_unit_body(text, 3) == "3.1 Cell walls\n\nWalls are rigid."


def test_body_capped_at_max_chars():
    text = "Chapter 8 " + "word " * 200
    assert len(extract_unit_body(text, 8, max_chars=50)) <= 50


def test_extract_unit_body_not_found():
    assert extract_unit_body("nothing to see", 5) is None
    assert extract_unit_body("", 5) is None


def test_negative_unit_number_rejected():
    with pytest.raises(ValueError):
        extract_unit_body(SAMPLE, -1)
    with pytest.raises(ValueError):
        get_unit_content(SAMPLE, -2)
