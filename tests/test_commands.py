"""Tests for the document commands."""

import unittest
from unittest.mock import Mock

from pageflow.commands import CommandRegistry, DocumentCommand
from pageflow.document import DocumentCommandInterface
from pageflow.state import CommandResult, FindMatch

LONG_TEXT = " ".join(f"word{i % 10}" for i in range(2000))


class TestContentCommands(unittest.TestCase):
    def setUp(self):
        self.doc = DocumentCommandInterface()

    def test_layout_empty_text(self):
        """Test laying out an empty document."""
        result = self.doc.execute_command("LAYOUT_TEXT", [""])
        self.assertTrue(result.success)
        state = self.doc.get_state()
        self.assertEqual(state.total_pages, 1)
        self.assertEqual(state.pages[0].page_number, 1)
        self.assertEqual(state.pages[0].content, "")
        self.assertFalse(state.pages[0].is_full)

    def test_add_text_appends(self):
        self.doc.execute_command("ADD_TEXT", ["Hello "])
        result = self.doc.execute_command("ADD_TEXT", ["world"])
        self.assertTrue(result.success)
        self.assertEqual(self.doc.get_state().content, "Hello world")
        self.assertIn("1 pages", result.message)

    def test_add_text_without_text_fails(self):
        result = self.doc.execute_command("ADD_TEXT", [])
        self.assertFalse(result.success)
        self.assertEqual(result.message, "No text provided.")

    def test_add_text_at_page_end(self):
        """Test inserting text at the end of a given page."""
        self.doc.execute_command("LAYOUT_TEXT", [LONG_TEXT])
        first_page_end = self.doc.get_state().pages[0].end_offset
        self.doc.execute_command("ADD_TEXT", ["MARKER ", 1])
        self.assertEqual(self.doc.get_state().content.index("MARKER"), first_page_end)

    def test_add_text_to_missing_page_appends(self):
        self.doc.execute_command("LAYOUT_TEXT", ["start"])
        self.doc.execute_command("ADD_TEXT", [" end", 9])
        self.assertEqual(self.doc.get_state().content, "start end")

    def test_clear_content(self):
        self.doc.execute_command("LAYOUT_TEXT", [LONG_TEXT])
        self.doc.execute_command("GO_TO_PAGE", [3])
        result = self.doc.execute_command("CLEAR_CONTENT")
        self.assertTrue(result.success)
        state = self.doc.get_state()
        self.assertEqual(state.content, "")
        self.assertEqual(state.total_pages, 1)
        self.assertEqual(state.current_page, 1)

    def test_current_page_clamped_after_shrinking(self):
        self.doc.execute_command("LAYOUT_TEXT", [LONG_TEXT])
        self.doc.execute_command("GO_TO_PAGE", [3])
        self.doc.execute_command("LAYOUT_TEXT", ["short"])
        self.assertEqual(self.doc.get_state().current_page, 1)


class TestPageCommands(unittest.TestCase):
    def setUp(self):
        self.doc = DocumentCommandInterface(LONG_TEXT)

    def test_insert_page_at_end(self):
        before = self.doc.get_state().total_pages
        result = self.doc.execute_command("INSERT_PAGE")
        self.assertTrue(result.success)
        state = self.doc.get_state()
        self.assertEqual(state.total_pages, before + 1)
        self.assertEqual(state.pages[-1].content, "")
        self.assertEqual(state.content, LONG_TEXT)

    def test_insert_page_first(self):
        """Test inserting a blank page before all others."""
        self.doc.execute_command("INSERT_PAGE", [0])
        pages = self.doc.get_state().pages
        self.assertEqual(pages[0].content, "")
        self.assertEqual([p.page_number for p in pages], list(range(1, len(pages) + 1)))

    def test_insert_page_out_of_range(self):
        total = self.doc.get_state().total_pages
        result = self.doc.execute_command("INSERT_PAGE", [total + 1])
        self.assertFalse(result.success)
        self.assertIn("Invalid page number", result.message)
        result = self.doc.execute_command("INSERT_PAGE", [-1])
        self.assertFalse(result.success)

    def test_delete_only_page(self):
        """Test that the last remaining page cannot be deleted."""
        doc = DocumentCommandInterface("just one page")
        result = doc.execute_command("DELETE_PAGE", [1])
        self.assertFalse(result.success)
        self.assertIn("only page", result.message)
        self.assertEqual(doc.get_state().content, "just one page")

    def test_delete_page_removes_exactly_its_text(self):
        state = self.doc.get_state()
        first = state.pages[0]
        result = self.doc.execute_command("DELETE_PAGE", [1])
        self.assertTrue(result.success)
        self.assertEqual(self.doc.get_state().content, LONG_TEXT[first.end_offset:])
        self.assertEqual(self.doc.get_state().total_pages, state.total_pages - 1)

    def test_delete_middle_page_keeps_other_text(self):
        state = self.doc.get_state()
        middle = state.pages[1]
        self.doc.execute_command("DELETE_PAGE", [2])
        expected = LONG_TEXT[:middle.start_offset] + LONG_TEXT[middle.end_offset:]
        self.assertEqual(self.doc.get_state().content, expected)

    def test_delete_inserted_blank_page_keeps_content(self):
        self.doc.execute_command("INSERT_PAGE", [1])
        self.doc.execute_command("DELETE_PAGE", [2])
        self.assertEqual(self.doc.get_state().content, LONG_TEXT)

    def test_delete_invalid_page(self):
        result = self.doc.execute_command("DELETE_PAGE", [0])
        self.assertFalse(result.success)
        result = self.doc.execute_command("DELETE_PAGE", ["1"])
        self.assertFalse(result.success)

    def test_go_to_page(self):
        result = self.doc.execute_command("GO_TO_PAGE", [2])
        self.assertTrue(result.success)
        self.assertEqual(self.doc.get_state().current_page, 2)
        result = self.doc.execute_command("GO_TO_PAGE", [99])
        self.assertFalse(result.success)
        self.assertEqual(self.doc.get_state().current_page, 2)

    def test_whole_number_floats_are_page_numbers(self):
        """Test page numbers given as floats such as 2.0."""
        self.assertTrue(self.doc.execute_command("GO_TO_PAGE", [2.0]).success)
        self.assertEqual(self.doc.get_state().current_page, 2)
        self.assertIsInstance(self.doc.get_state().current_page, int)

        self.assertFalse(self.doc.execute_command("GO_TO_PAGE", [2.5]).success)
        self.assertFalse(self.doc.execute_command("DELETE_PAGE", [float("inf")]).success)

        state = self.doc.get_state()
        second = state.pages[1]
        self.assertTrue(self.doc.execute_command("DELETE_PAGE", [2.0]).success)
        expected = LONG_TEXT[:second.start_offset] + LONG_TEXT[second.end_offset:]
        self.assertEqual(self.doc.get_state().content, expected)

    def test_insert_page_with_float_position(self):
        total = self.doc.get_state().total_pages
        result = self.doc.execute_command("INSERT_PAGE", [1.0])
        self.assertTrue(result.success)
        self.assertIn("after page 1.", result.message)
        self.assertEqual(self.doc.get_state().total_pages, total + 1)
        self.assertEqual(self.doc.get_state().pages[1].content, "")


class TestConfigurationCommands(unittest.TestCase):
    def setUp(self):
        self.doc = DocumentCommandInterface(LONG_TEXT)

    def test_smaller_font_needs_fewer_pages(self):
        """Test reflowing at 6px and 8px."""
        self.doc.execute_command("SET_FONT_SIZE", [6])
        pages_at_6 = self.doc.get_state().total_pages
        self.doc.execute_command("SET_FONT_SIZE", [8])
        pages_at_8 = self.doc.get_state().total_pages
        self.assertLessEqual(pages_at_6, pages_at_8)
        self.assertGreater(pages_at_8, 1)

    def test_font_size_out_of_range(self):
        for size in (5, 73, "12", True, None, float("nan")):
            result = self.doc.execute_command("SET_FONT_SIZE", [size])
            self.assertFalse(result.success, size)
            self.assertIn("between 6 and 72", result.message)
        self.assertEqual(self.doc.get_state().engine.scaled_font_size(), 12)

    def test_bogus_page_size_leaves_pages_unchanged(self):
        pages = self.doc.get_state().pages
        result = self.doc.execute_command("SET_PAGE_SIZE", ["bogus"])
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Invalid page size: bogus")
        self.assertEqual(self.doc.get_state().pages, pages)

    def test_set_page_size_rescales_font(self):
        result = self.doc.execute_command("SET_PAGE_SIZE", ["a3"])
        self.assertTrue(result.success)
        engine = self.doc.get_state().engine
        self.assertEqual(engine.page_config.key, "a3")
        self.assertEqual(engine.scaled_font_size(), 17)

    def test_explicit_font_kept_across_page_sizes(self):
        self.doc.execute_command("SET_FONT_SIZE", [20])
        self.doc.execute_command("SET_PAGE_SIZE", ["a3"])
        self.assertEqual(self.doc.get_state().engine.scaled_font_size(), 20)

    def test_commands_do_not_share_engines(self):
        """Test that a rejected change never touches the previous engine."""
        engine = self.doc.get_state().engine
        self.doc.execute_command("SET_PAGE_SIZE", ["legal"])
        self.assertEqual(engine.page_config.key, "letter")

    def test_state_engine_cannot_change_the_document(self):
        """Test that the engine handed out by get_state() is detached."""
        state = self.doc.get_state()
        pages, metrics = state.pages, state.metrics

        engine = state.engine
        engine.reflow(LONG_TEXT, page_size="a3")
        engine.set_page_style(line_height=3.0, padding={"left": 0})

        result = self.doc.execute_command("GET_METRICS")
        self.assertEqual(result.data["metrics"], metrics)
        self.assertEqual(result.data["metrics"].characters_per_line, 93)
        self.assertIs(self.doc.get_state(), state)
        self.assertEqual(self.doc.get_state().pages, pages)
        self.assertEqual(self.doc.get_state().engine.page_config.key, "letter")
        self.assertEqual(self.doc.get_state().engine.line_height, 1.6)

    def test_set_page_style(self):
        result = self.doc.execute_command("SET_PAGE_STYLE", [None, None, 2.0, {"left": 0}])
        self.assertTrue(result.success)
        engine = self.doc.get_state().engine
        self.assertEqual(engine.line_height, 2.0)
        self.assertEqual(engine.page_config.padding.left, 0)

    def test_set_page_style_rejects_bad_padding(self):
        for padding in ({"middle": 1}, {"left": -1}, [1, 2]):
            result = self.doc.execute_command("SET_PAGE_STYLE", [None, None, None, padding])
            self.assertFalse(result.success, padding)

    def test_reflow_content(self):
        result = self.doc.execute_command("REFLOW_CONTENT", ["a4", 10])
        self.assertTrue(result.success)
        self.assertIn("page size: a4", result.message)
        self.assertIn("font size: 10pt", result.message)
        engine = self.doc.get_state().engine
        self.assertEqual(engine.page_config.key, "a4")
        self.assertEqual(engine.scaled_font_size(), 10)

    def test_reflow_with_nothing_recognized(self):
        """Test that unrecognized reflow values are dropped, not errors."""
        state = self.doc.get_state()
        result = self.doc.execute_command("REFLOW_CONTENT", ["bogus", 500])
        self.assertTrue(result.success)
        self.assertIsNone(result.new_state)
        self.assertIs(self.doc.get_state(), state)


class TestSearchCommands(unittest.TestCase):
    def setUp(self):
        self.doc = DocumentCommandInterface("abc a.c aaa")

    def test_replace_is_literal_by_default(self):
        result = self.doc.execute_command("REPLACE_TEXT", ["a.c", "X"])
        self.assertTrue(result.success)
        self.assertEqual(self.doc.get_state().content, "abc X aaa")
        self.assertEqual(result.data["replacements"], 1)

    def test_replace_with_pattern(self):
        result = self.doc.execute_command("REPLACE_TEXT", ["a.c", "X", True])
        self.assertEqual(self.doc.get_state().content, "X X aaa")
        self.assertEqual(result.data["replacements"], 2)

    def test_literal_replacement_text(self):
        self.doc.execute_command("REPLACE_TEXT", ["abc", r"\1"])
        self.assertEqual(self.doc.get_state().content, r"\1 a.c aaa")

    def test_invalid_pattern(self):
        result = self.doc.execute_command("REPLACE_TEXT", ["(", "X", True])
        self.assertFalse(result.success)
        self.assertIn("Invalid search pattern", result.message)
        self.assertEqual(self.doc.get_state().content, "abc a.c aaa")

    def test_metacharacters_are_safe_by_default(self):
        result = self.doc.execute_command("FIND_TEXT", ["("])
        self.assertTrue(result.success)
        self.assertEqual(result.data["matches"], [])

    def test_find_overlapping(self):
        result = self.doc.execute_command("FIND_TEXT", ["aa"])
        self.assertTrue(result.success)
        self.assertTrue(result.preview_mode)
        self.assertEqual(result.data["matches"], [FindMatch(1, 8), FindMatch(1, 9)])
        self.assertIn("2 locations", result.message)

    def test_find_with_pattern(self):
        result = self.doc.execute_command("FIND_TEXT", ["a.c", True])
        self.assertEqual([m.position for m in result.data["matches"]], [0, 4])

    def test_find_not_found(self):
        result = self.doc.execute_command("FIND_TEXT", ["zzz"])
        self.assertTrue(result.success)
        self.assertIn("not found", result.message)

    def test_empty_search(self):
        for command in ("FIND_TEXT", "REPLACE_TEXT"):
            result = self.doc.execute_command(command, [""])
            self.assertFalse(result.success)
            self.assertEqual(result.message, "No search text provided.")


class TestQueryCommands(unittest.TestCase):
    def setUp(self):
        self.doc = DocumentCommandInterface(LONG_TEXT)

    def test_preview_does_not_mutate(self):
        state = self.doc.get_state()
        result = self.doc.execute_command("PREVIEW_LAYOUT", ["one two three"])
        self.assertTrue(result.success)
        self.assertTrue(result.preview_mode)
        self.assertIsNone(result.new_state)
        self.assertEqual(result.data["estimated_pages"], 1)
        self.assertEqual(result.data["word_count"], 3)
        self.assertIs(self.doc.get_state(), state)

    def test_preview_defaults_to_document(self):
        result = self.doc.execute_command("PREVIEW_LAYOUT")
        self.assertEqual(result.data["word_count"], 2000)

    def test_get_page_count(self):
        result = self.doc.execute_command("GET_PAGE_COUNT")
        self.assertEqual(result.data["total_pages"], self.doc.get_state().total_pages)

    def test_get_metrics(self):
        result = self.doc.execute_command("GET_METRICS")
        self.assertTrue(result.success)
        self.assertEqual(result.data["metrics"].characters_per_line, 93)
        self.assertEqual(result.data["font_size"], 12)


class TestRegistry(unittest.TestCase):
    def test_unknown_command(self):
        doc = DocumentCommandInterface()
        result = doc.execute_command("FOO")
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Unknown command: FOO")

    def test_names_are_case_insensitive(self):
        doc = DocumentCommandInterface("text")
        self.assertTrue(doc.execute_command("get_page_count").success)

    def test_default_commands(self):
        names = CommandRegistry().names()
        for name in ("ADD_TEXT", "INSERT_PAGE", "DELETE_PAGE", "SET_FONT_SIZE", "SET_PAGE_SIZE",
                     "LAYOUT_TEXT", "PREVIEW_LAYOUT", "REFLOW_CONTENT", "GO_TO_PAGE",
                     "GET_PAGE_COUNT", "GET_METRICS", "CLEAR_CONTENT", "REPLACE_TEXT",
                     "FIND_TEXT", "SET_PAGE_STYLE"):
            self.assertIn(name, names)

    def test_exception_becomes_failure(self):
        """Test that a crashing command leaves the state untouched."""
        registry = CommandRegistry()
        broken = Mock(spec=DocumentCommand)
        broken.execute.side_effect = RuntimeError("boom")
        registry.register("BOOM", broken)
        doc = DocumentCommandInterface("text", registry=registry)
        state = doc.get_state()

        result = doc.execute_command("BOOM")

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Error executing command BOOM: boom")
        self.assertIs(doc.get_state(), state)

    def test_custom_command(self):
        registry = CommandRegistry()
        command = Mock(spec=DocumentCommand)
        command.execute.return_value = CommandResult(success=True, message="ok")
        registry.register("custom", command)
        doc = DocumentCommandInterface(registry=registry)
        self.assertEqual(doc.execute_command("CUSTOM", ["x"]).message, "ok")
        command.execute.assert_called_once_with(doc.get_state(), ["x"])
