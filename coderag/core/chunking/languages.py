"""Language detection and per-language boundary patterns."""
import re
from pathlib import PurePath

LANGUAGE_BY_EXTENSION = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".pyi": "python",
    ".rs": "rust",
    ".go": "go",
    ".java": "java",
    ".kt": "kotlin",
    ".scala": "scala",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".cs": "csharp",
    ".sol": "solidity",
    ".md": "markdown",
    ".mdx": "markdown",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".sh": "bash",
    ".bash": "bash",
    ".sql": "sql",
    ".graphql": "graphql",
    ".gql": "graphql",
    ".proto": "protobuf",
    ".tf": "terraform",
}

DOC_LANGUAGES = frozenset({"markdown"})

# Matched against the left-stripped line.
BOUNDARY_PATTERNS: dict[str, list[re.Pattern]] = {
    "typescript": [
        re.compile(r"^export\s+(default\s+)?(function|class|interface|type|enum|const|let|abstract)"),
        re.compile(r"^(function|class|interface|type|enum)\s"),
        re.compile(r"^(const|let|var)\s+\w+\s*=\s*(async\s+)?\("),
        re.compile(r"^(describe|it|test|beforeAll|afterAll)\("),
        re.compile(r"^/\*\*"),
    ],
    "javascript": [
        re.compile(r"^export\s+(default\s+)?(function|class|const|let)"),
        re.compile(r"^(function|class)\s"),
        re.compile(r"^(const|let|var)\s+\w+\s*=\s*(async\s+)?\("),
        re.compile(r"^(describe|it|test)\("),
        re.compile(r"^/\*\*"),
    ],
    "python": [
        re.compile(r"^(def|class|async\s+def)\s"),
        re.compile(r"^@\w"),
        re.compile(r"^(if\s+__name__|import|from)\s"),
    ],
    "rust": [
        re.compile(r"^(pub\s+)?(fn|struct|enum|impl|trait|mod|use)\s"),
        re.compile(r"^#\["),
    ],
    "go": [
        re.compile(r"^func\s"),
        re.compile(r"^type\s+\w+\s+(struct|interface)"),
        re.compile(r"^(package|import)\s"),
    ],
    "markdown": [
        re.compile(r"^#{1,3}\s"),
        re.compile(r"^---\s*$"),
    ],
}


def detect_language(file_path: str) -> str:
    """Resolve a language tag from the file extension.

    Unknown extensions fall back to the lowercased file name, so
    ``Dockerfile`` becomes ``dockerfile``.
    """
    path = PurePath(file_path)
    return LANGUAGE_BY_EXTENSION.get(path.suffix.lower(), path.name.lower())


def boundary_patterns(language: str) -> list[re.Pattern]:
    return BOUNDARY_PATTERNS.get(language, [])


def is_doc_language(language: str) -> bool:
    return language in DOC_LANGUAGES
