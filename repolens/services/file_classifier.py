"""File type classification, ignore rules and display labels."""

import posixpath

from repolens.models import FileType

IGNORED_FOLDERS = frozenset(
    name.lower()
    for name in [
        # JavaScript/Node.js
        "node_modules", "bower_components", ".npm", ".yarn", ".pnp",
        # Build outputs
        "dist", "build", "out", "target", "bin", "obj",
        # IDE/Editor
        ".vs", ".vscode", ".idea", ".eclipse", ".settings",
        # Version control
        ".git", ".svn", ".hg",
        # Package managers
        "packages", "vendor",
        # Python
        "__pycache__", ".pytest_cache", ".mypy_cache", ".tox", "venv", ".venv",
        "env", ".env", "virtualenv",
        # Ruby / JVM
        ".bundle", ".gradle", ".m2",
        # Testing/Coverage
        "coverage", ".nyc_output", "htmlcov",
        # Logs and temp
        "logs", "log", "tmp", "temp", ".tmp", ".temp",
        # OS
        ".ds_store", "thumbs.db",
    ]
)

EXTENSION_MAP: dict[str, FileType] = {
    # .NET
    ".cs": FileType.CSHARP,
    ".vb": FileType.VISUAL_BASIC,
    ".fs": FileType.FSHARP,
    ".fsx": FileType.FSHARP,
    ".fsi": FileType.FSHARP,
    ".csproj": FileType.CONFIGURATION,
    ".vbproj": FileType.CONFIGURATION,
    ".fsproj": FileType.CONFIGURATION,
    ".sln": FileType.CONFIGURATION,
    # ASP.NET
    ".aspx": FileType.ASPNET,
    ".ascx": FileType.ASPNET,
    ".asmx": FileType.ASPNET,
    ".ashx": FileType.ASPNET,
    ".master": FileType.ASPNET,
    ".vbhtml": FileType.ASPNET,
    ".cshtml": FileType.ASPNET,
    ".razor": FileType.ASPNET,
    ".resx": FileType.XML,
    # JavaScript/TypeScript
    ".js": FileType.JAVASCRIPT,
    ".mjs": FileType.JAVASCRIPT,
    ".cjs": FileType.JAVASCRIPT,
    ".jsx": FileType.JSX,
    ".ts": FileType.TYPESCRIPT,
    ".tsx": FileType.TSX,
    # HTML/CSS
    ".html": FileType.HTML,
    ".htm": FileType.HTML,
    ".css": FileType.CSS,
    ".scss": FileType.CSS,
    ".sass": FileType.CSS,
    ".less": FileType.CSS,
    ".vue": FileType.VUE,
    ".svelte": FileType.SVELTE,
    # JVM
    ".java": FileType.JAVA,
    ".kt": FileType.KOTLIN,
    ".kts": FileType.KOTLIN,
    ".scala": FileType.SCALA,
    ".sc": FileType.SCALA,
    ".groovy": FileType.GROOVY,
    ".gradle": FileType.GROOVY,
    # Python
    ".py": FileType.PYTHON,
    ".pyw": FileType.PYTHON,
    ".pyx": FileType.PYTHON,
    ".pyi": FileType.PYTHON,
    # PHP / Ruby
    ".php": FileType.PHP,
    ".phtml": FileType.PHP,
    ".rb": FileType.RUBY,
    ".erb": FileType.RUBY,
    ".rake": FileType.RUBY,
    ".gemspec": FileType.RUBY,
    # Systems
    ".go": FileType.GO,
    ".rs": FileType.RUST,
    ".c": FileType.C,
    ".h": FileType.C,
    ".cpp": FileType.CPLUSPLUS,
    ".cc": FileType.CPLUSPLUS,
    ".cxx": FileType.CPLUSPLUS,
    ".hpp": FileType.CPLUSPLUS,
    ".hxx": FileType.CPLUSPLUS,
    ".m": FileType.OBJECTIVE_C,
    ".mm": FileType.OBJECTIVE_C,
    ".swift": FileType.SWIFT,
    ".dart": FileType.DART,
    # Database / scripts
    ".sql": FileType.SQL,
    ".sh": FileType.SHELL,
    ".bash": FileType.SHELL,
    ".zsh": FileType.SHELL,
    ".fish": FileType.SHELL,
    ".bat": FileType.SHELL,
    ".cmd": FileType.SHELL,
    ".ps1": FileType.POWERSHELL,
    ".psm1": FileType.POWERSHELL,
    ".psd1": FileType.POWERSHELL,
    # Data formats
    ".json": FileType.JSON,
    ".xml": FileType.XML,
    ".yaml": FileType.YAML,
    ".yml": FileType.YAML,
    # Configuration
    ".toml": FileType.CONFIGURATION,
    ".config": FileType.CONFIGURATION,
    ".ini": FileType.CONFIGURATION,
    ".conf": FileType.CONFIGURATION,
    ".properties": FileType.CONFIGURATION,
    ".env": FileType.CONFIGURATION,
    ".editorconfig": FileType.CONFIGURATION,
    ".gitignore": FileType.CONFIGURATION,
    ".dockerignore": FileType.CONFIGURATION,
    ".dockerfile": FileType.CONFIGURATION,
    # Documentation
    ".md": FileType.MARKDOWN,
    ".markdown": FileType.MARKDOWN,
    ".txt": FileType.MARKDOWN,
    ".rst": FileType.MARKDOWN,
    ".adoc": FileType.MARKDOWN,
    # Other languages
    ".pl": FileType.PERL,
    ".pm": FileType.PERL,
    ".r": FileType.R,
    ".lua": FileType.LUA,
    ".ex": FileType.ELIXIR,
    ".exs": FileType.ELIXIR,
    ".hs": FileType.HASKELL,
    ".lhs": FileType.HASKELL,
}

SPECIAL_FILE_NAMES: dict[str, FileType] = {
    "dockerfile": FileType.CONFIGURATION,
    "docker-compose.yml": FileType.YAML,
    "docker-compose.yaml": FileType.YAML,
    "makefile": FileType.CONFIGURATION,
    "cmakelists.txt": FileType.CONFIGURATION,
    "cargo.toml": FileType.CONFIGURATION,
    "requirements.txt": FileType.CONFIGURATION,
    "pipfile": FileType.CONFIGURATION,
    "build.gradle": FileType.GROOVY,
    "pom.xml": FileType.XML,
    "package.json": FileType.JSON,
    "composer.json": FileType.JSON,
    "gemfile": FileType.RUBY,
    "setup.py": FileType.PYTHON,
}

# Folder-name fragment -> label, checked in order
_FOLDER_LABELS = [
    (("controller",), "Controller"),
    (("service",), "Service"),
    (("model", "entity", "entities"), "Model"),
    (("repository", "repositories"), "Repository"),
    (("interface",), "Interface"),
    (("dto",), "DTO"),
    (("helper",), "Helper"),
    (("util",), "Utility"),
    (("config",), "Configuration"),
    (("middleware",), "Middleware"),
    (("filter",), "Filter"),
]

_EXTENSION_LABELS = {
    ".cs": "C# File",
    ".vb": "VB.NET File",
    ".vbproj": "VB.NET Project",
    ".aspx": "ASP.NET Page",
    ".ascx": "ASP.NET User Control",
    ".asmx": "ASP.NET Web Service",
    ".ashx": "ASP.NET Handler",
    ".master": "ASP.NET Master Page",
    ".vbhtml": "VB.NET Razor View",
    ".cshtml": "C# Razor View",
    ".resx": "Resource File",
    ".ts": "TypeScript File",
    ".js": "JavaScript File",
    ".py": "Python File",
    ".java": "Java File",
    ".go": "Go File",
    ".html": "HTML Template",
    ".htm": "HTML File",
    ".css": "Stylesheet",
    ".scss": "SCSS Stylesheet",
    ".json": "JSON Config",
    ".xml": "XML File",
    ".config": "Configuration File",
    ".md": "Documentation",
    ".txt": "Text File",
    ".sql": "SQL Script",
}


class FileClassifier:
    """Maps paths to file types and decides what gets analyzed."""

    def __init__(self, ignored_folders: frozenset[str] = IGNORED_FOLDERS) -> None:
        self.ignored_folders = ignored_folders

    def should_ignore(self, file_path: str) -> bool:
        parts = file_path.replace("\\", "/").split("/")
        return any(part.lower() in self.ignored_folders for part in parts if part)

    def get_file_type(self, file_path: str) -> FileType:
        name = posixpath.basename(file_path.replace("\\", "/")).lower()
        if name in SPECIAL_FILE_NAMES:
            return SPECIAL_FILE_NAMES[name]
        _, ext = posixpath.splitext(name)
        return EXTENSION_MAP.get(ext, FileType.UNKNOWN)

    def is_code_file(self, file_type: FileType) -> bool:
        return file_type not in (FileType.UNKNOWN, FileType.MARKDOWN, FileType.CONFIGURATION)

    def is_markdown_file(self, file_type: FileType) -> bool:
        return file_type == FileType.MARKDOWN


def describe_file(file_path: str) -> str:
    """Human label for progress messages, e.g. "Controller" or "C# File"."""
    normalized = file_path.replace("\\", "/")
    directory = posixpath.basename(posixpath.dirname(normalized)).lower()
    for fragments, label in _FOLDER_LABELS:
        if any(fragment in directory for fragment in fragments):
            return label
    _, ext = posixpath.splitext(normalized.lower())
    return _EXTENSION_LABELS.get(ext, "Code File")
