#!/usr/bin/env python3
"""
Random fuzzer for pushxml.
Generates well-formed and malformed XML and checks that every parse either
succeeds with consistent events or fails with XmlParseError.
"""

import argparse
import random
import string
import sys
import time
import traceback

from pushxml import Consumer, XmlParseError, parse

# Fuzzing strategies
NAMES = ["a", "b", "item", "ns:tag", "x-y", "_z", "h1", "café", "data.v2"]
BAD_NAMES = ["", "1a", "-x", " a", ".dot"]
ATTRIBUTE_NAMES = ["id", "class", "xml:lang", "href", "data-x", "version", "k"]

ENTITIES = [
    "&amp;", "&lt;", "&gt;", "&quot;", "&apos;", "&#65;", "&#x41;", "&#x1F600;",
    "&", "&amp", "&nbsp;", "&#;", "&#x;", "&#0;", "&#xD800;", "&#x110000;",
]

SPECIAL_CHARS = ["\x00", "\x7f", " ", " ", "﻿", "\r", "\t", "\n"]


def random_string(min_len=0, max_len=20):
    """Generate a random string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choice(string.ascii_letters + string.digits + " ") for _ in range(length))


def random_whitespace():
    return "".join(random.choice(" \t\r\n") for _ in range(random.randint(0, 3)))


def fuzz_name():
    if random.random() < 0.05:
        return random.choice(BAD_NAMES)
    return random.choice(NAMES)


def fuzz_attribute():
    name = random.choice(ATTRIBUTE_NAMES)
    quote = random.choice(['"', "'"])
    value = random_string(0, 10)
    if random.random() < 0.2:
        value += random.choice(ENTITIES)
    strategy = random.random()
    if strategy < 0.03:
        return f" {name}={value}"  # unquoted
    if strategy < 0.06:
        return f" {name}"  # no value
    if strategy < 0.08:
        return f" {name}={quote}{value}"  # unterminated
    return f"{random_whitespace() or ' '}{name}{random_whitespace()}={random_whitespace()}{quote}{value}{quote}"


def fuzz_text():
    parts = [random_string(0, 30)]
    if random.random() < 0.3:
        parts.append(random.choice(ENTITIES))
    if random.random() < 0.1:
        parts.append(random.choice(SPECIAL_CHARS))
    if random.random() < 0.02:
        parts.append(random.choice(["<", "&", ">"]))
    return "".join(parts)


def fuzz_comment():
    body = random_string(0, 20).replace("--", "")
    if random.random() < 0.05:
        return f"<!--{body}"
    return f"<!--{body}-->"


def fuzz_cdata():
    body = random.choice([fuzz_text(), "<raw>&x", "]]", "]>"])
    if random.random() < 0.05:
        return f"<![CDATA[{body}"
    return f"<![CDATA[{body}]]>"


def fuzz_processing_instruction():
    attrs = "".join(fuzz_attribute() for _ in range(random.randint(0, 2)))
    end = "?>" if random.random() > 0.05 else random.choice(["?", ">", "/>"])
    return f"<?{fuzz_name()}{attrs}{random_whitespace()}{end}"


def fuzz_doctype():
    subset = ""
    if random.random() < 0.3:
        subset = " [<!ELEMENT a ANY><!ENTITY e 'v'>]"
    end = ">" if random.random() > 0.05 else ""
    return f"<!DOCTYPE {random.choice(NAMES)}{subset}{end}"


def fuzz_element(depth=0, max_depth=6):
    name = fuzz_name()
    attrs = "".join(fuzz_attribute() for _ in range(random.randint(0, 3)))
    if random.random() < 0.2 or depth >= max_depth:
        return f"<{name}{attrs}{random_whitespace()}/>"
    children = []
    for _ in range(random.randint(0, 4)):
        children.append(fuzz_content(depth + 1, max_depth))
    close = name
    if random.random() < 0.03:
        close = random.choice(NAMES)  # mismatched
    if random.random() < 0.02:
        return f"<{name}{attrs}>{''.join(children)}"  # unclosed
    return f"<{name}{attrs}>{''.join(children)}</{close}{random_whitespace()}>"


def fuzz_content(depth, max_depth):
    strategy = random.choices(
        [fuzz_element, fuzz_text, fuzz_comment, fuzz_cdata, fuzz_processing_instruction],
        weights=[10, 8, 2, 2, 1],
    )[0]
    if strategy is fuzz_element:
        return fuzz_element(depth, max_depth)
    return strategy()


def fuzz_deeply_nested():
    depth = random.randint(100, 2000)
    return "<d>" * depth + "x" + "</d>" * depth


def generate_fuzzed_xml():
    """Generate a complete fuzzed XML document."""
    parts = []
    if random.random() < 0.5:
        parts.append('<?xml version="1.0"?>')
    if random.random() < 0.3:
        parts.append(fuzz_doctype())
    if random.random() < 0.02:
        parts.append(fuzz_deeply_nested())
    else:
        parts.append(fuzz_element())
    if random.random() < 0.2:
        parts.append(fuzz_comment())
    document = random_whitespace().join(parts)
    if random.random() < 0.05:
        cut = random.randint(0, len(document))
        document = document[:cut]
    return document.encode("utf-8")


class InvariantChecker(Consumer):
    """Consumer that asserts event ordering invariants as events arrive."""

    def __init__(self):
        self.stack = []
        self.pending_attributes = False
        self.finished = False

    def _check(self, condition, message):
        if not condition:
            raise AssertionError(message)

    def processing_instruction(self, name):
        self._check(not self.pending_attributes, "processing instruction inside an open tag")
        self.pending_attributes = True
        return True

    def doctype(self, content):
        self._check(not self.pending_attributes, "doctype inside an open tag")
        return True

    def enter_element(self, name):
        self._check(not self.pending_attributes, "element opened inside an open tag")
        self.stack.append(bytes(name))
        self.pending_attributes = True
        return True

    def element_attribute(self, name, value):
        self._check(self.pending_attributes, "attribute outside a tag")
        return True

    def finish_attributes(self):
        self._check(self.pending_attributes, "finish_attributes without an open tag")
        self.pending_attributes = False
        return True

    def leave_element(self, name):
        self._check(not self.pending_attributes, "leave before finish_attributes")
        self._check(self.stack and self.stack[-1] == bytes(name), "unbalanced leave_element")
        self.stack.pop()
        return True

    def text(self, text):
        self._check(not self.pending_attributes, "text inside an open tag")
        self._check(len(text) > 0, "empty text event")
        return True

    def cdata(self, content):
        self._check(not self.pending_attributes, "cdata inside an open tag")
        return True

    def finish(self):
        self._check(not self.stack, "finish with open elements")
        self.finished = True
        return True


def run_fuzzer(num_tests, seed=None, verbose=False, save_failures=False):
    """Run the fuzzer against pushxml."""
    if seed is not None:
        random.seed(seed)

    crashes = []
    hangs = []
    successes = 0
    rejected = 0

    print(f"Fuzzing pushxml with {num_tests} test cases...")
    start_time = time.time()

    for i in range(num_tests):
        data = generate_fuzzed_xml()

        if verbose and i % 100 == 0:
            print(f"  Test {i}/{num_tests}...")

        checker = InvariantChecker()
        try:
            start = time.perf_counter()
            completed = parse(checker, data)
            elapsed = time.perf_counter() - start
            if not completed or not checker.finished:
                raise AssertionError("parse returned without finishing")
            if elapsed > 5.0:
                hangs.append({"test_num": i, "xml": data, "time": elapsed})
                if verbose:
                    print(f"  HANG: Test {i} took {elapsed:.2f}s")
            else:
                successes += 1
        except XmlParseError:
            rejected += 1
        except Exception as e:
            crashes.append({
                "test_num": i,
                "xml": data,
                "error": str(e),
                "traceback": traceback.format_exc(),
            })
            if verbose:
                print(f"  CRASH: Test {i}: {e}")

    elapsed_total = time.time() - start_time

    print(f"\n{'='*60}")
    print("FUZZING RESULTS: pushxml")
    print(f"{'='*60}")
    print(f"Total tests:    {num_tests}")
    print(f"Parsed:         {successes}")
    print(f"Rejected:       {rejected}")
    print(f"Crashes:        {len(crashes)}")
    print(f"Hangs (>5s):    {len(hangs)}")
    print(f"Total time:     {elapsed_total:.2f}s")
    print(f"Tests/second:   {num_tests/elapsed_total:.1f}")

    if crashes:
        print(f"\n{'='*60}")
        print("CRASH DETAILS:")
        print(f"{'='*60}")
        for crash in crashes[:10]:
            print(f"\nTest #{crash['test_num']}:")
            print(f"  XML: {crash['xml'][:200]!r}...")
            print(f"  Error: {crash['error']}")
        if len(crashes) > 10:
            print(f"\n... and {len(crashes) - 10} more crashes")

    if save_failures and (crashes or hangs):
        filename = f"fuzz_failures_pushxml_{int(time.time())}.txt"
        with open(filename, "w") as f:
            f.write(f"Seed: {seed}\n\n")
            for crash in crashes:
                f.write(f"=== CRASH #{crash['test_num']} ===\n")
                f.write(f"XML:\n{crash['xml']!r}\n")
                f.write(f"Error: {crash['error']}\n")
                f.write(f"Traceback:\n{crash['traceback']}\n\n")
            for hang in hangs:
                f.write(f"=== HANG #{hang['test_num']} ({hang['time']:.2f}s) ===\n")
                f.write(f"XML:\n{hang['xml']!r}\n\n")
        print(f"\nFailures saved to {filename}")

    return len(crashes) == 0 and len(hangs) == 0


def main():
    parser = argparse.ArgumentParser(description="Fuzz pushxml with random and malformed XML")
    parser.add_argument(
        "--num-tests", "-n",
        type=int,
        default=1000,
        help="Number of test cases to generate (default: 1000)",
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--save-failures",
        action="store_true",
        help="Save failures to a file",
    )
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Just print N sample fuzzed documents (no parsing)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed:
            random.seed(args.seed)
        for i in range(args.sample):
            print(f"=== Sample {i+1} ===")
            print(generate_fuzzed_xml().decode("utf-8", "replace"))
            print()
        return

    success = run_fuzzer(
        args.num_tests,
        seed=args.seed,
        verbose=args.verbose,
        save_failures=args.save_failures,
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
