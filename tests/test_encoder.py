import unittest

from gobf import Compiler, CompilerOptions, GoEncoder, compile_source, parse

LOOP_HEADER = "for registers[currentIndex] != 0 {"
OUTPUT_STATEMENT = "stdout.WriteByte(registers[currentIndex])"


class EncodeStatementTests(unittest.TestCase):
    def test_run_is_encoded_as_one_statement(self) -> None:
        code = compile_source("+++")
        self.assertEqual(code.count("registers[currentIndex] += 3\n"), 1)
        self.assertNotIn("registers[currentIndex] += 1\n", code)

    def test_decrement(self) -> None:
        code = compile_source("--")
        self.assertIn("registers[currentIndex] -= 2\n", code)

    def test_arithmetic_count_wraps_to_byte(self) -> None:
        code = compile_source("+" * 257)
        self.assertIn("registers[currentIndex] += 1\n", code)

    def test_shift_next_wraps_modulo_tape(self) -> None:
        code = compile_source(">>>")
        self.assertIn("currentIndex = (currentIndex + 3) % REGISTERS\n", code)

    def test_shift_prev_wraps_to_last_index(self) -> None:
        code = compile_source("<")
        self.assertIn("currentIndex = (currentIndex + REGISTERS - 1) % REGISTERS\n", code)
        code = compile_source("<" * 199)
        self.assertIn("currentIndex = (currentIndex + REGISTERS - 99) % REGISTERS\n", code)

    def test_nested_program_wrappers(self) -> None:
        code = compile_source("+++[>+++[>+++<-]<-]>+.")
        self.assertEqual(code.count(LOOP_HEADER), 2)
        self.assertEqual(code.count(OUTPUT_STATEMENT), 1)

    def test_loop_body_is_indented_one_level_deeper(self) -> None:
        code = compile_source("[+]")
        self.assertIn(
            "\t" + LOOP_HEADER + "\n\t\tregisters[currentIndex] += 1\n\t}\n",
            code,
        )

    def test_input_clears_cell_on_eof(self) -> None:
        code = compile_source(",")
        self.assertIn("value, err := stdin.ReadByte()", code)
        self.assertIn("if err == io.EOF {\n\t\t\tregisters[currentIndex] = 0\n", code)
        self.assertIn("os.Exit(1)", code)

    def test_function_definition_and_exec(self) -> None:
        code = compile_source("{+}!")
        self.assertIn("\tfunctions[currentIndex] = func() {\n\t\tregisters[currentIndex] += 1\n\t}\n", code)
        self.assertIn("\tif functions[currentIndex] != nil {\n\t\tfunctions[currentIndex]()\n\t}\n", code)


class EncodeFrameTests(unittest.TestCase):
    def test_program_header(self) -> None:
        code = compile_source("")
        self.assertTrue(code.startswith("package main\n"))
        self.assertIn("const REGISTERS = 100\n", code)
        self.assertIn("registers := make([]byte, REGISTERS)", code)
        self.assertIn("currentIndex := 0", code)
        self.assertTrue(code.endswith("os.Stdout.Sync()\n}\n"))

    def test_no_io_omits_capability_imports(self) -> None:
        code = compile_source("+[->+<]")
        self.assertIn('"os"', code)
        self.assertNotIn('"bufio"', code)
        self.assertNotIn('"io"', code)
        self.assertNotIn("stdin", code)
        self.assertNotIn("stdout", code)

    def test_output_only_imports_output_capability(self) -> None:
        code = compile_source(".")
        self.assertIn('"bufio"', code)
        self.assertNotIn('"io"', code)
        self.assertIn("stdout := bufio.NewWriter(os.Stdout)", code)
        self.assertNotIn("stdin", code)

    def test_input_imports_input_capability(self) -> None:
        code = compile_source(",")
        self.assertIn('"io"', code)
        self.assertIn("stdin := bufio.NewReader(os.Stdin)", code)
        self.assertNotIn("stdout", code)

    def test_postamble_flushes_buffered_output(self) -> None:
        code = compile_source("+.")
        self.assertLess(code.index("stdout.Flush()"), code.index("os.Stdout.Sync()"))

    def test_read_error_flushes_pending_output(self) -> None:
        code = compile_source(".,")
        self.assertEqual(code.count("stdout.Flush()"), 2)

    def test_extended_dialect_declares_closure_slots(self) -> None:
        code = compile_source("+")
        self.assertIn("functions := make([]func(), REGISTERS)", code)

    def test_classic_dialect_omits_closure_slots(self) -> None:
        code = compile_source("{+}!", CompilerOptions(extended=False))
        self.assertNotIn("functions", code)

    def test_encoder_declares_closures_when_tree_needs_them(self) -> None:
        code = GoEncoder(extended=False).encode(parse("{+}"))
        self.assertIn("functions := make([]func(), REGISTERS)", code)

    def test_compiler_is_deterministic(self) -> None:
        compiler = Compiler()
        source = "++[>,.<-]{.}!"
        self.assertEqual(compiler.compile(source), compiler.compile(source))


if __name__ == "__main__":
    unittest.main()
