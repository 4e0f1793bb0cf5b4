#!/usr/bin/env python3
"""
Method Insight sequence reports (Python)
----------------------------------------
Given one Java method, collects:
- the methods it calls, transitively, within a depth bound
- the JUnit/TestNG tests that call the method or any of those callees
and renders a Markdown report with a Mermaid sequence diagram plus the tests
grouped by the call they exercise.

USAGE EXAMPLES
--------------
# 1) Run against the built-in sample project (no files needed):
method-insight --entry UserService.addUser

# 2) Run against a directory of .java files (recursive):
method-insight /path/to/java/project --entry com.acme.Foo#bar --mermaid --json

DEPENDENCIES
------------
    pip install tree-sitter tree-sitter-java
"""

import argparse
import logging
import os
import sys
from typing import Optional

from method_insight.src.method_insight.analysis.java_backend import JavaReferenceIndex, JavaSourceModel
from method_insight.src.method_insight.config import ConfigError, ReportConfig
from method_insight.src.method_insight.indexer import JavaIndexer
from method_insight.src.method_insight.inputs.directory_scanning import index_directory
from method_insight.src.method_insight.outputs.output import print_summary
from method_insight.src.method_insight.pipeline import generate_report, report_file_names

logger = logging.getLogger(__name__)

# --- Demo sources ------------------------------------------------------------

SAMPLE_JAVA = r"""
package com.acme.demo;

import java.util.*;

public class UserService {
    private final UserRepository repo = new UserRepository();

    public User addUser(String name) {
        // Call into our repository and also use a static helper
        String trimmed = StringUtils.trim(name);
        repo.save(trimmed);
        return new User(trimmed);
    }

    public void printAll() {
        List<String> all = repo.findAll();
        for (String n : all) {
            System.out.println(n);
        }
    }

    static class StringUtils {
        static String trim(String s) { return s.trim(); }
    }
}

class UserRepository {
    List<String> store = new ArrayList<>();
    public void save(String name) { store.add(name); }
    public List<String> findAll() { return store; }
}

class User {
    private final String name;
    public User(String name) { this.name = name; }
}
"""

SAMPLE_TEST_JAVA = r"""
package com.acme.demo;

import org.junit.jupiter.api.DisplayName;
import org.junit.jupiter.api.Test;

class UserServiceTest {
    @Test
    @DisplayName("adds a user through the service")
    void addUser_savesName() {
        UserService service = new UserService();
        service.addUser(" ada ");
    }

    @Test
    void save_storesName() {
        UserRepository repo = new UserRepository();
        repo.save("grace");
    }
}
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="method-insight",
        description="Render a sequence report (call graph + tests) for one Java method.",
    )
    parser.add_argument("root", nargs="?", help="Java project directory (default: built-in sample)")
    parser.add_argument("--entry", "-e", required=True,
                        help="Entry method, e.g. UserService.addUser or com.acme.Foo#bar(String)")
    parser.add_argument("--max-depth", type=int, default=None,
                        help="Maximum call depth (default: $METHOD_INSIGHT_MAX_DEPTH or 5)")
    parser.add_argument("--output-dir", "-o", default=".", help="Where to write the report files")
    parser.add_argument("--mermaid", action="store_true", help="Also write the .mmd diagram")
    parser.add_argument("--json", action="store_true", help="Also write the JSON test export")
    parser.add_argument("--summary", action="store_true", help="Print calls and tests to stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def write_text(path: str, content: str):
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ReportConfig.from_env()
        if args.max_depth is not None:
            config = config.with_max_depth(args.max_depth)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    # Index the given directory, else the in-code sample
    indexer = JavaIndexer(config)
    if args.root:
        index_directory(indexer, args.root)
    else:
        indexer.index_source(SAMPLE_JAVA, "src/main/java/com/acme/demo/UserService.java")
        indexer.index_source(SAMPLE_TEST_JAVA, "src/test/java/com/acme/demo/UserServiceTest.java")

    source_model = JavaSourceModel(indexer, config)
    report = generate_report(args.entry, source_model, JavaReferenceIndex(source_model), config)
    if report is None:
        return 1

    if args.summary:
        print_summary(report.graph_result, report.tests)

    names = report_file_names(report.entry, config)
    os.makedirs(args.output_dir, exist_ok=True)
    outputs = [(names.markdown, report.markdown)]
    if args.mermaid:
        outputs.append((names.mermaid, report.mermaid))
    if args.json:
        outputs.append((names.export, report.export))
    for name, content in outputs:
        path = os.path.join(args.output_dir, name)
        write_text(path, content)
        logger.info("Wrote %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
