"""Unit tests for line modifications and line generators."""

from datetime import date

from shellcraft.domain import lines as lp
from shellcraft.domain import writer
from shellcraft.domain.writer import AppendLine, DeleteLine, InsertAfter, UpdateLine
from shellcraft.models import PathEntry

LINES = ["zero", "one", "two", "three", "four"]


class TestApply:
    def test_update_replaces_line(self):
        """
        Given five lines
        When an UpdateLine at index 2 is applied
        Then only line 2 changes
        """
        assert writer.apply([UpdateLine(2, "TWO")], LINES) == ["zero", "one", "TWO", "three", "four"]

    def test_input_is_not_mutated(self):
        """
        Given a line list
        When modifications are applied
        Then the original list is unchanged
        """
        original = list(LINES)
        writer.apply([DeleteLine(0), AppendLine("x")], original)
        assert original == LINES

    def test_batch_is_order_independent(self):
        """
        Given an update, a delete at a lower index and an append
        When the batch is applied in two different orders
        Then both results address the original indices
        """
        lines = ["a", "b", "c", "d", "e"]
        mods = [UpdateLine(3, "X"), DeleteLine(1), AppendLine("Y")]
        expected = ["a", "c", "X", "e", "Y"]
        assert writer.apply(mods, lines) == expected
        assert writer.apply(list(reversed(mods)), lines) == expected

    def test_same_index_insert_and_delete_in_either_order(self):
        """
        Given a delete and an insert-after that address the same line
        When the pair is applied in both orders
        Then the line is removed and the insert lands in its place both times
        """
        mods = [DeleteLine(1), InsertAfter(1, "X")]
        lines = ["a", "b", "c"]
        assert writer.apply(mods, lines) == ["a", "X", "c"]
        assert writer.apply(list(reversed(mods)), lines) == ["a", "X", "c"]

    def test_same_index_update_and_insert_in_either_order(self):
        """
        Given an update and an insert-after on the same line
        When the pair is applied in both orders
        Then the line is rewritten and the insert follows it
        """
        mods = [UpdateLine(0, "A"), InsertAfter(0, "X")]
        assert writer.apply(mods, ["a", "b"]) == ["A", "X", "b"]
        assert writer.apply(list(reversed(mods)), ["a", "b"]) == ["A", "X", "b"]

    def test_insert_after(self):
        """
        Given three lines
        When InsertAfter(0) is applied
        Then the new line lands at index 1
        """
        assert writer.apply([InsertAfter(0, "new")], ["a", "b", "c"]) == ["a", "new", "b", "c"]

    def test_insert_after_minus_one_prepends(self):
        """
        Given a non-empty list
        When InsertAfter(-1) is applied
        Then the new line becomes the first line
        """
        assert writer.apply([InsertAfter(-1, "top")], ["a"]) == ["top", "a"]

    def test_appends_keep_their_order(self):
        """
        Given several appends in one batch
        When they are applied
        Then they come out in the order given
        """
        mods = [AppendLine("1"), AppendLine("2"), AppendLine("3")]
        assert writer.apply(mods, ["a"]) == ["a", "1", "2", "3"]

    def test_append_keeps_final_newline(self):
        """
        Given lines read from a file that ends with a newline
        When two lines are appended
        Then they land before the trailing empty element
        """
        assert writer.apply([AppendLine("1"), AppendLine("2")], ["a", ""]) == ["a", "1", "2", ""]

    def test_blank_append_to_unterminated_file(self):
        """
        Given lines from a file without a final newline
        When a blank line and a text line are appended
        Then both are added at the end in order
        """
        assert writer.apply([AppendLine(""), AppendLine("x")], ["a"]) == ["a", "", "x"]

    def test_out_of_range_indices_are_ignored(self):
        """
        Given update and delete indices past the end
        When they are applied
        Then the lines are unchanged
        """
        assert writer.apply([UpdateLine(10, "x"), DeleteLine(-1), DeleteLine(99)], ["a"]) == ["a"]

    def test_empty_batch_returns_copy(self):
        """
        Given no modifications
        When apply is called
        Then the same lines are returned
        """
        assert writer.apply([], LINES) == LINES


class TestRanges:
    def test_replace_range_grows(self):
        """
        Given a two-line range
        When it is replaced with four lines
        Then the new lines appear in order and the rest is untouched
        """
        mods = writer.replace_range(1, 2, ["A", "B", "C", "D"])
        assert writer.apply(mods, LINES) == ["zero", "A", "B", "C", "D", "three", "four"]

    def test_replace_range_shrinks(self):
        """
        Given a three-line range
        When it is replaced with one line
        Then the surplus old lines are deleted
        """
        mods = writer.replace_range(1, 3, ["X"])
        assert writer.apply(mods, LINES) == ["zero", "X", "four"]

    def test_replace_range_with_lower_edit_in_same_batch(self):
        """
        Given a range replacement that adds lines and an update above it
        When both are applied as one batch
        Then the lower-index update still hits its original line
        """
        mods = writer.replace_range(3, 3, ["T1", "T2", "T3"]) + [UpdateLine(1, "ONE")]
        assert writer.apply(mods, LINES) == ["zero", "ONE", "two", "T1", "T2", "T3", "four"]

    def test_delete_range(self):
        """
        Given an inclusive range
        When delete_range is applied
        Then exactly those lines disappear
        """
        assert writer.apply(writer.delete_range(1, 3), LINES) == ["zero", "four"]


class TestGenerators:
    def test_alias_prefers_single_quotes(self):
        """
        Given an expansion without single quotes
        When generate_alias_line is called
        Then single quotes are used
        """
        assert writer.generate_alias_line("ll", "ls -la") == "alias ll='ls -la'"

    def test_alias_with_single_quote_uses_double_quotes(self):
        """
        Given an expansion containing a single quote
        When generate_alias_line is called
        Then double quotes are used
        """
        line = writer.generate_alias_line("say", "echo 'hi'")
        assert line == "alias say=\"echo 'hi'\""

    def test_disabled_alias_is_commented(self):
        """
        Given a disabled alias
        When generate_alias_line is called
        Then the line is prefixed with '# '
        """
        assert writer.generate_alias_line("gs", "git status", enabled=False) == "# alias gs='git status'"

    def test_alias_round_trip(self):
        """
        Given generated alias lines, enabled and disabled
        When they are parsed back
        Then name, expansion and state survive
        """
        for expansion in ["ls -la", "echo 'quoted'", "git log --oneline"]:
            for enabled in (True, False):
                parsed = lp.parse_alias(writer.generate_alias_line("x", expansion, enabled))
                assert parsed is not None
                assert (parsed.name, parsed.expansion, parsed.enabled) == ("x", expansion, enabled)

    def test_function_block_indents_body(self):
        """
        Given a two-line body with an empty line between
        When generate_function_block is called
        Then non-empty lines get two spaces and empty lines stay empty
        """
        block = writer.generate_function_block("mkcd", 'mkdir -p "$1"\n\ncd "$1"')
        assert block == 'mkcd() {\n  mkdir -p "$1"\n\n  cd "$1"\n}'

    def test_export_line_quotes_plain_values(self):
        """
        Given a plain value
        When generate_export_line is called
        Then the value is double-quoted
        """
        assert writer.generate_export_line("EDITOR", "nvim") == 'export EDITOR="nvim"'

    def test_export_line_leaves_substitutions_bare(self):
        """
        Given values containing $( ) or backticks
        When generate_export_line is called
        Then they are written unquoted
        """
        assert writer.generate_export_line("U", "$(whoami)") == "export U=$(whoami)"
        assert writer.generate_export_line("U", "`whoami`") == "export U=`whoami`"

    def test_bare_assignment(self):
        """
        Given exported=False
        When generate_export_line is called
        Then no export keyword is written
        """
        assert writer.generate_export_line("HISTSIZE", "100", exported=False) == 'HISTSIZE="100"'

    def test_keychain_export_line(self):
        """
        Given a key and its conventional service name
        When generate_keychain_export_line is called
        Then a security lookup line is produced that parses back as keychain-derived
        """
        line = writer.generate_keychain_export_line("API_KEY", writer.keychain_service_name("API_KEY"))
        assert line == "export API_KEY=$(security find-generic-password -s 'env/API_KEY' -a \"$USER\" -w)"
        parsed = lp.parse_export(line)
        assert parsed is not None
        assert parsed.key == "API_KEY"
        assert lp.is_keychain_derived(parsed.value)

    def test_path_export_line_sorts_by_order(self):
        """
        Given entries out of order
        When generate_path_export_line is called
        Then they are joined by order with $PATH last
        """
        entries = [PathEntry(path="/b", order=1), PathEntry(path="/a", order=0)]
        line = writer.generate_path_export_line(entries)
        assert line == 'export PATH="/a:/b:$PATH"'
        assert lp.parse_path(line) == ["/a", "/b"]

    def test_export_header(self):
        """
        Given a section title and a date
        When export_header is called
        Then a zsh shebang banner ending in a blank line is produced
        """
        header = writer.export_header("Aliases", today=date(2024, 5, 1))
        assert header == "#!/bin/zsh\n# shellcraft export: Aliases\n# 2024-05-01\n\n"
