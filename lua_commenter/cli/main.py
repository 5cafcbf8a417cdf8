"""Main CLI entry point for lua_commenter"""

import sys
import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from lua_commenter.analyzers.type_analyzer import TypeAnalyzer
from lua_commenter.core.annotation_nodes import AnnotationNode
from lua_commenter.core.ast_annotation import attach_annotations, leading_comment_tokens
from lua_commenter.core.ast_nodes import CodeNode, FunctionDef, ModuleDeclaration
from lua_commenter.core.diagnostics import DiagnosticLogger
from lua_commenter.core.project_catalog import ProjectCatalog
from lua_commenter.core.tokens import Token, TokenKind
from lua_commenter.generators.annotator import Annotator
from lua_commenter.generators.pretty_printer import pretty_print_merged, pretty_print_tokens
from lua_commenter.parser.annotation_parser import AnnotationParser
from lua_commenter.parser.code_parser import CodeParser
from lua_commenter.tokenizer.code_tokenizer import tokenize

ANNOTATED_SUFFIX = ".annotated.lua"


@dataclass
class AnalysisResult:
    """Everything the pipeline produces for one source text"""
    tokens: List[Token]
    code_ast: List[CodeNode]
    annotation_ast: List[AnnotationNode]
    diagnostics: DiagnosticLogger = field(default_factory=DiagnosticLogger)


def analyze_source(source: str, catalog: Optional[ProjectCatalog] = None,
                   diagnostics: Optional[DiagnosticLogger] = None) -> AnalysisResult:
    """Tokenize, parse and type-analyze Lua source

    Args:
        source: Lua source text
        catalog: Project catalog receiving exports (a new one if omitted)
        diagnostics: Sink shared by all stages (a new one if omitted)

    Returns:
        Tokens, analyzed code tree, annotation tree and diagnostics
    """
    if diagnostics is None:
        diagnostics = DiagnosticLogger()
    if catalog is None:
        catalog = ProjectCatalog()

    tokens = tokenize(source)
    code_ast = CodeParser(tokens, diagnostics).parse()
    annotation_ast = AnnotationParser(tokens, diagnostics).parse()

    catalog.register_annotations(annotation_ast)
    attach_annotations(code_ast, tokens)
    TypeAnalyzer(catalog, diagnostics).analyze(code_ast)
    return AnalysisResult(tokens, code_ast, annotation_ast, diagnostics)


def annotate_source(source: str, catalog: Optional[ProjectCatalog] = None,
                    preserve_existing: bool = True,
                    diagnostics: Optional[DiagnosticLogger] = None) -> str:
    """Insert generated annotations into Lua source

    Every top-level function or module declaration without annotations
    gets a generated block on the lines right above it, at its
    indentation. The plain doc comment of such a function is replaced by
    the block, which re-emits it when ``preserve_existing`` is set. Nodes that
    already carry annotations are left untouched, so running the tool
    on its own output changes nothing.

    Args:
        source: Lua source text
        catalog: Project catalog receiving exports
        preserve_existing: Keep doc comments in the generated blocks
        diagnostics: Sink for dropped constructs

    Returns:
        Annotated source text
    """
    result = analyze_source(source, catalog, diagnostics)
    lines = split_source_lines(source)
    index_by_start = {token.span.start: idx for idx, token in enumerate(result.tokens)}

    # Insert bottom-up so earlier line numbers stay valid.
    insertions = []
    for node in result.code_ast:
        if not isinstance(node, (FunctionDef, ModuleDeclaration)) or node.annotations:
            continue
        if node.span is None or node.span.start not in index_by_start:
            continue
        first_line = node.span.line
        replaced = 0
        leading = leading_comment_tokens(result.tokens, index_by_start[node.span.start])
        # Module blocks never re-emit a doc, so only function docs are replaced.
        if isinstance(node, FunctionDef) and node.doc is not None and leading \
                and leading[-1].kind == TokenKind.COMMENT and _starts_line(lines, leading[-1]):
            first_line = leading[-1].span.line
            replaced = 1
        # A doc comment that is not replaced stays in the source as it is.
        block = Annotator(preserve_existing and replaced > 0).render_node(node)
        if block:
            insertions.append((first_line, replaced, block))

    for line_no, replaced, block in sorted(insertions, reverse=True):
        target = lines[line_no - 1 + replaced] if line_no - 1 + replaced < len(lines) else ""
        indent = target[:len(target) - len(target.lstrip())]
        rendered = [f"{indent}{text}\n" for text in block.split("\n")]
        lines[line_no - 1:line_no - 1 + replaced] = rendered
    return "".join(lines)


def split_source_lines(source: str) -> List[str]:
    """Split source into lines at ``\\n`` only, keeping the line ends

    Token spans count lines the same way, so form feeds or other
    Unicode line breaks inside strings and comments do not start lines.
    """
    lines = [line + "\n" for line in source.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def _starts_line(lines: List[str], token: Token) -> bool:
    """True if only whitespace precedes the token on its line"""
    line = lines[token.span.line - 1]
    return not line[:token.span.column - 1].strip()


def output_path_for(input_file: Path, output: Optional[str], overwrite: bool) -> Path:
    """Compute where the annotated copy of a file goes

    Args:
        input_file: Source file
        output: Directory, or file name pattern where ``{}`` is the
            input name without extension
        overwrite: Write back to the input file

    Returns:
        Output path
    """
    if overwrite:
        return input_file
    if output is None:
        return input_file.with_name(input_file.stem + ANNOTATED_SUFFIX)
    if "{}" in output:
        return Path(output.replace("{}", input_file.stem))
    output_path = Path(output)
    if output_path.is_dir():
        return output_path / (input_file.stem + ANNOTATED_SUFFIX)
    return output_path


def collect_inputs(inputs: List[str], recursive: bool) -> List[Path]:
    """Expand input arguments into Lua files

    Args:
        inputs: Files and directories from the command line
        recursive: Descend into directories

    Returns:
        Files to process, in argument order
    """
    files: List[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            if not recursive:
                print(f"Skipping directory {path} (use --recursive)", file=sys.stderr)
                continue
            files.extend(p for p in sorted(path.rglob("*.lua"))
                         if not p.name.endswith(ANNOTATED_SUFFIX))
        else:
            files.append(path)
    return files


def annotate_file(input_file: Path, output_file: Path, catalog: ProjectCatalog,
                  preserve_existing: bool = True,
                  diagnostics: Optional[DiagnosticLogger] = None) -> None:
    """Annotate one file and write the result

    Args:
        input_file: Lua source file
        output_file: Destination path
        catalog: Project catalog shared by all files of the run
        preserve_existing: Keep doc comments in the generated blocks
        diagnostics: Sink for dropped constructs

    Raises:
        OSError: If the file cannot be read or written
        UnicodeDecodeError: If the file is not UTF-8
    """
    source = input_file.read_text(encoding="utf-8")
    annotated = annotate_source(source, catalog, preserve_existing, diagnostics)
    output_file.write_text(annotated, encoding="utf-8")


def dump_file(input_file: Path, diagnostics: Optional[DiagnosticLogger] = None) -> str:
    """Render tokens and both syntax trees of a file for debugging"""
    source = input_file.read_text(encoding="utf-8")
    result = analyze_source(source, diagnostics=diagnostics)
    return pretty_print_tokens(result.tokens) + "\n" + pretty_print_merged(
        result.code_ast, result.annotation_ast)


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description='lua-commenter - Generate EmmyLua annotations for Lua source',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lua-commenter init.lua                  # writes init.annotated.lua
  lua-commenter init.lua -o out/          # writes out/init.annotated.lua
  lua-commenter src -r -o "docs/{}.lua"   # pattern, {} = input name
  lua-commenter init.lua -w               # annotate in place
  lua-commenter init.lua --dump-ast       # print tokens and trees
        """
    )

    parser.add_argument('inputs', nargs='+', help='Input Lua files or directories')
    parser.add_argument(
        '-o', '--output', type=str,
        help='Output directory, or file pattern where {} is the input name'
    )
    parser.add_argument(
        '-w', '--overwrite', action='store_true',
        help='Overwrite input files instead of writing .annotated.lua copies'
    )
    parser.add_argument(
        '-r', '--recursive', action='store_true',
        help='Process .lua files in directories recursively'
    )
    parser.add_argument(
        '--dump-ast', action='store_true',
        help='Print tokens and syntax trees instead of writing files'
    )
    parser.add_argument(
        '--no-preserve', action='store_true',
        help='Drop existing doc comments of annotated functions'
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Enable verbose output'
    )

    args = parser.parse_args(argv)

    catalog = ProjectCatalog()
    diagnostics = DiagnosticLogger()
    failed = False

    for input_file in collect_inputs(args.inputs, args.recursive):
        try:
            if args.dump_ast:
                print(dump_file(input_file, diagnostics))
                continue
            output_file = output_path_for(input_file, args.output, args.overwrite)
            if args.verbose:
                print(f"Processing file: {input_file}")
            annotate_file(input_file, output_file, catalog,
                          preserve_existing=not args.no_preserve, diagnostics=diagnostics)
            print(f"Annotated file saved: {output_file}")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading {input_file}: {e}", file=sys.stderr)
            failed = True

    if args.verbose:
        summary = catalog.get_summary()
        print(f"\nModules: {summary['total_modules']}, exports: {summary['total_exports']}")
        print(diagnostics.print_summary())

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
