"""Test framework lookup and test filename derivation.

Pure functions, no I/O. The filename table is explicit per framework
because the generated files are created in the repository under exactly
these names.
"""

import posixpath
from dataclasses import dataclass

# Extensions the test writer generates tests for
SUPPORTED_EXTENSIONS = frozenset({"js", "ts", "py", "java", "go"})

FRAMEWORKS_BY_EXTENSION = {
    "js": "jest",
    "ts": "jest",
    "py": "pytest",
    "java": "junit",
    "go": "testing",
    "rb": "rspec",
    "php": "phpunit",
}

GENERIC_FRAMEWORK = "generic"
EXISTING_TESTS = "existing"

# {base} is the path without its extension, {name} the basename of {base}
TEST_FILENAME_PATTERNS = {
    "jest": "{base}.test.{ext}",
    "pytest": "test_{name}.py",
    "junit": "{base}Test.java",
    "testing": "{base}_test.go",
    "rspec": "{base}_spec.rb",
    "phpunit": "{base}Test.php",
}
DEFAULT_TEST_FILENAME_PATTERN = "{base}.test.{ext}"


@dataclass(frozen=True)
class FrameworkMatch:
    """Framework chosen for a source file and the test file to create."""

    framework: str
    test_filename: str


def split_extension(filename: str) -> tuple[str, str]:
    """Split ``filename`` into (base, ext) on the last dot.

    A name without a dot is both its own base and its own extension.
    """
    base, dot, ext = filename.rpartition(".")
    if not dot:
        return filename, filename
    return base, ext


def is_test_file(filename: str) -> bool:
    """Whether the file already follows a test naming convention."""
    return ".test." in filename or ".spec." in filename


def is_supported(filename: str) -> bool:
    return "." in filename and split_extension(filename)[1] in SUPPORTED_EXTENSIONS


def detect_framework(filename: str) -> str:
    """Pick a framework from the file extension."""
    if is_test_file(filename):
        return EXISTING_TESTS
    _, ext = split_extension(filename)
    return FRAMEWORKS_BY_EXTENSION.get(ext, GENERIC_FRAMEWORK)


def derive_test_filename(filename: str, framework: str) -> str:
    """Derive the test file path for ``filename`` under ``framework``."""
    base, ext = split_extension(filename)
    pattern = TEST_FILENAME_PATTERNS.get(framework, DEFAULT_TEST_FILENAME_PATTERN)
    return pattern.format(base=base, ext=ext, name=posixpath.basename(base))


def resolve(filename: str, override: str | None = None) -> FrameworkMatch:
    """Resolve framework and test filename for a source file.

    Args:
        filename: Repository-relative path of the source file
        override: Caller-chosen framework, bypassing detection

    Returns:
        FrameworkMatch with the framework and output filename.
    """
    framework = override or detect_framework(filename)
    return FrameworkMatch(framework, derive_test_filename(filename, framework))
