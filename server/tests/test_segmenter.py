"""Tests for pattern-based slide segmentation."""

from beacon.services.segmenter import (
    MAX_SLIDES,
    group_lines,
    is_section_header,
    match_quote,
    segment,
    split_columns,
)


def _strings(slide) -> list[str]:
    values = [slide.title, *slide.content]
    values += slide.left_content or []
    values += slide.right_content or []
    values += [v for v in (slide.quote, slide.attribution) if v]
    return [v for v in values if v]


# =============================================================================
# Classification rules
# =============================================================================


class TestRules:
    def test_quote_with_attribution(self):
        slides = segment("“Stay hungry, stay foolish.” — Steve Jobs", "talk.pdf")

        assert len(slides) == 1
        assert slides[0].type == "quote"
        assert slides[0].quote == "Stay hungry, stay foolish."
        assert slides[0].attribution == "Steve Jobs"

    def test_quote_without_attribution(self):
        slides = segment('"Measure twice, cut once."', "x.pdf")

        assert slides[0].type == "quote"
        assert slides[0].attribution is None

    def test_section_divider_colon(self):
        slides = segment("Key Findings:", "x.pdf")

        assert slides[0].type == "section-divider"
        assert slides[0].title == "Key Findings"

    def test_section_divider_all_caps_and_chapter(self):
        assert segment("OVERVIEW", "x.pdf")[0].type == "section-divider"
        assert segment("Chapter 3 The Road Ahead", "x.pdf")[0].type == "section-divider"

    def test_short_title_is_highlighted(self):
        slide = segment("Quarterly business review", "x.pdf")[0]

        assert slide.type == "title"
        assert slide.highlight is True

    def test_medium_title_not_highlighted(self):
        line = "A considerably longer headline for the opening of this deck"
        slide = segment(line, "x.pdf")[0]

        assert 40 <= len(line) < 80
        assert slide.type == "title"
        assert slide.highlight is False

    def test_two_column_split_rounds_left(self):
        text = "Team roster\nAlice\nBob\nCarol\nDan\nEve\nFrank\nGrace\n\nThanks"
        slide = segment(text, "x.pdf")[0]

        assert slide.type == "two-column"
        assert slide.title == "Team roster"
        assert slide.left_content == ["Alice", "Bob", "Carol", "Dan"]
        assert slide.right_content == ["Eve", "Frank", "Grace"]

    def test_highlight_section(self):
        text = "Key wins\nRevenue up twelve percent\nCosts down four percent\n\nClosing"
        slide = segment(text, "x.pdf")[0]

        assert slide.type == "highlight"
        assert slide.highlight is True
        assert slide.content == ["Revenue up twelve percent", "Costs down four percent"]

    def test_long_single_line_repeats_as_content(self):
        line = "This single paragraph runs on well past the title length limit so it cannot be a title slide."
        slide = segment(line, "x.pdf")[0]

        assert slide.type == "content"
        assert slide.title == line
        assert slide.content == [line]

    def test_content_with_long_body(self):
        body = "x" * 120
        text = f"Results\n{body}\n\nNext steps"
        slide = segment(text, "x.pdf")[0]

        assert slide.type == "content"
        assert slide.content == [body]


class TestHelpers:
    def test_is_section_header(self):
        assert is_section_header("Summary:")
        assert is_section_header("RISKS AND MITIGATIONS")
        assert is_section_header("Part 2 Operations")
        assert not is_section_header("2024")
        assert not is_section_header("Just an ordinary line")
        assert not is_section_header("A" * 70 + ":")

    def test_match_quote_requires_closing_quote(self):
        assert match_quote('"unterminated') is None
        assert match_quote("'single quoted' - Ada") == ("single quoted", "Ada")

    def test_split_columns(self):
        assert split_columns([1, 2, 3, 4, 5]) == ([1, 2, 3], [4, 5])
        assert split_columns([1, 2]) == ([1], [2])

    def test_group_lines_breaks_on_headers(self):
        groups = group_lines(["Intro line", "SUMMARY", "First point", "Second point"])
        assert groups == [["Intro line"], ["SUMMARY"], ["First point", "Second point"]]

    def test_group_lines_breaks_after_five_when_next_is_short(self):
        lines = [f"line {i}" for i in range(8)]
        groups = group_lines(lines)
        assert groups == [lines[:5], lines[5:]]


# =============================================================================
# Properties
# =============================================================================


class TestProperties:
    def test_empty_text_yields_filename_slide(self):
        slides = segment("   \n\n  ", "board-pack.pdf")

        assert len(slides) == 1
        assert slides[0].title == "board-pack"
        assert slides[0].type == "content"

    def test_capped_at_max_slides(self):
        text = "\n\n".join(f"Section heading number {i}" for i in range(120))
        slides = segment(text, "x.pdf")

        assert len(slides) == MAX_SLIDES == 50
        assert slides[0].title == "Section heading number 0"

    def test_idempotent(self, report_lines):
        text = "\n".join(report_lines) + "\n\nAPPENDIX\n\n“Onward.” – The Board"
        assert segment(text, "x.pdf") == segment(text, "x.pdf")

    def test_no_text_is_invented(self, report_lines):
        text = "\n".join(report_lines) + "\n\nRISKS:\n\nTeam\nA\nB\nC\nD\nE\nF\n\n'Keep going' - CEO"
        for slide in segment(text, "x.pdf"):
            assert slide.title or slide.content or slide.quote
            for value in _strings(slide):
                assert value in text

    def test_report_scenario_single_content_slide(self, report_lines):
        """Ten plain lines become one content slide titled by the first line."""
        slides = segment("\n".join(report_lines), "report.pdf")

        assert len(slides) == 1
        assert slides[0].type == "content"
        assert slides[0].title == report_lines[0]
        assert slides[0].content == report_lines[1:]

    def test_windows_line_endings(self):
        slides = segment("Key wins\r\nRevenue up\r\nCosts down\r\n\r\nEnd", "x.pdf")
        assert slides[0].content == ["Revenue up", "Costs down"]
