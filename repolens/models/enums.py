"""Enumerations shared by findings, files and reports."""

from enum import Enum


class Severity(str, Enum):
    """Severity / priority / impact level.

    Serialized by label. Use ``rank`` for ordering: Low < Medium < High < Critical.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]


_SEVERITY_RANKS = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class ViolationType(str, Enum):
    """Types of coding standard violations."""

    NAMING_CONVENTION = "NamingConvention"
    ARCHITECTURE = "Architecture"
    SECURITY = "Security"
    PERFORMANCE = "Performance"
    CODE_SMELL = "CodeSmell"
    DOCUMENTATION = "Documentation"
    TESTING = "Testing"
    ERROR_HANDLING = "ErrorHandling"
    BEST_PRACTICE = "BestPractice"


class DuplicationType(str, Enum):
    """Types of code duplication, by decreasing similarity."""

    EXACT_MATCH = "ExactMatch"
    STRUCTURAL_MATCH = "StructuralMatch"
    LOGICAL_MATCH = "LogicalMatch"
    FUNCTIONAL_MATCH = "FunctionalMatch"
    PARTIAL_MATCH = "PartialMatch"


class FileType(str, Enum):
    """Language / format classification of a source file."""

    UNKNOWN = "Unknown"
    CSHARP = "CSharp"
    VISUAL_BASIC = "VisualBasic"
    FSHARP = "FSharp"
    TYPESCRIPT = "TypeScript"
    JAVASCRIPT = "JavaScript"
    HTML = "HTML"
    CSS = "CSS"
    JAVA = "Java"
    KOTLIN = "Kotlin"
    SCALA = "Scala"
    GROOVY = "Groovy"
    PYTHON = "Python"
    PHP = "PHP"
    RUBY = "Ruby"
    GO = "Go"
    RUST = "Rust"
    C = "C"
    CPLUSPLUS = "CPlusPlus"
    OBJECTIVE_C = "ObjectiveC"
    SWIFT = "Swift"
    SQL = "SQL"
    JSON = "JSON"
    XML = "XML"
    YAML = "YAML"
    MARKDOWN = "Markdown"
    CONFIGURATION = "Configuration"
    ASPNET = "ASPNET"
    JSX = "JSX"
    TSX = "TSX"
    VUE = "Vue"
    SVELTE = "Svelte"
    DART = "Dart"
    SHELL = "Shell"
    POWERSHELL = "PowerShell"
    PERL = "Perl"
    R = "R"
    LUA = "Lua"
    ELIXIR = "Elixir"
    HASKELL = "Haskell"
