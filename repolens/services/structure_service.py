"""Project structure summary: folders, file types, stack and architecture."""

import logging
import posixpath

from repolens.exceptions import LLMUnavailableError
from repolens.models import FileType, ProjectSummary, SourceFile
from repolens.services.batching import ProgressWindow
from repolens.services.llm_service import ChatBackend, system_message, user_message
from repolens.services.progress import ProgressReporter
from repolens.services.response_parser import ResponseParser

logger = logging.getLogger(__name__)

KEY_FILE_PATTERNS = [
    "program", "startup", "main", "app", "index",
    "controller", "service", "repository", "model",
    "package.json", "pom.xml", "build.gradle", "cargo.toml",
    "requirements.txt", "gemfile", "composer.json",
    ".csproj", ".vbproj", ".fsproj", ".sln",
]

_NON_LANGUAGE_TYPES = {FileType.CONFIGURATION.value, FileType.MARKDOWN.value, "Documentation"}

_STACK_BY_TYPE = [
    ((FileType.CSHARP, FileType.VISUAL_BASIC), ".NET"),
    ((FileType.JAVA,), "Java"),
    ((FileType.PYTHON,), "Python"),
    ((FileType.PHP,), "PHP"),
    ((FileType.RUBY,), "Ruby"),
    ((FileType.GO,), "Go"),
    ((FileType.RUST,), "Rust"),
    ((FileType.TYPESCRIPT, FileType.TSX), "TypeScript"),
    ((FileType.JAVASCRIPT, FileType.JSX), "JavaScript"),
    ((FileType.VUE,), "Vue.js"),
]

BUSINESS_KEYWORDS = {
    "analysis": "Code Analysis",
    "report": "Reporting",
    "repository": "Data Management",
    "authentication": "Security & Authentication",
    "authorization": "Access Control",
    "payment": "Payment Processing",
    "order": "Order Management",
    "inventory": "Inventory Management",
    "user": "User Management",
    "product": "Product Catalog",
    "invoice": "Invoicing",
    "notification": "Notifications",
    "workflow": "Workflow Management",
    "task": "Task Management",
    "scheduler": "Job Scheduling",
}

SUMMARY_PROMPT = """Analyze this project and provide a comprehensive summary.

Folder Structure:
{folders}

File Type Distribution:
{distribution}

Sample Key Files:
{key_files}

Respond with ONLY a JSON object with fields projectName, description, technologyStack,
architecture (e.g. Clean Architecture, MVC, Microservices), businessLogic,
coreFunctionality, keyFeatures (list), mainComponents (list), primaryLanguage,
dependencies (list)."""


def analyze_folder_structure(files: list[SourceFile]) -> dict[str, int]:
    """Count files under every folder name appearing in their paths."""
    counts: dict[str, int] = {}
    for source in files:
        directory = posixpath.dirname(source.file_path.replace("\\", "/"))
        for folder in directory.split("/"):
            if folder:
                counts[folder] = counts.get(folder, 0) + 1
    return counts


def file_type_distribution(files: list[SourceFile]) -> dict[str, int]:
    distribution: dict[str, int] = {}
    for source in files:
        key = source.file_type.value
        distribution[key] = distribution.get(key, 0) + 1
    return distribution


def is_key_file(file_path: str) -> bool:
    name = posixpath.basename(file_path.replace("\\", "/")).lower()
    return any(pattern in name for pattern in KEY_FILE_PATTERNS)


class StructureService:
    """Builds the ProjectSummary shown at the top of a report."""

    def __init__(self, backend: ChatBackend | None = None, parser: ResponseParser | None = None):
        self.backend = backend
        self.parser = parser or ResponseParser()

    async def summarize(
        self,
        files: list[SourceFile],
        folders: dict[str, int],
        distribution: dict[str, int],
        reporter: ProgressReporter | None = None,
        window: ProgressWindow | None = None,
        project_name: str = "",
    ) -> ProjectSummary:
        reporter = reporter or ProgressReporter()
        window = window or ProgressWindow(0, 100)
        await reporter.report(window.at(0.1), "Analyzing project structure and business logic...")

        heuristic = self.heuristic_summary(files, folders, distribution, project_name)
        if self.backend is None:
            return heuristic

        try:
            summary = await self._model_summary(files, folders, distribution)
        except LLMUnavailableError as e:
            logger.warning(f"Model unavailable for project summary, using heuristics: {e}")
            return heuristic
        except Exception as e:
            logger.warning(f"Project summary failed, using heuristics: {e}")
            return heuristic

        if summary is None:
            logger.warning("Model returned no usable project summary, using heuristics")
            return heuristic
        return summary.model_copy(
            update={
                "project_name": summary.project_name or heuristic.project_name,
                "primary_language": summary.primary_language or heuristic.primary_language,
                "folder_structure": dict(folders),
                "file_type_distribution": dict(distribution),
            }
        )

    async def _model_summary(
        self,
        files: list[SourceFile],
        folders: dict[str, int],
        distribution: dict[str, int],
    ) -> ProjectSummary | None:
        key_files = [f for f in files if is_key_file(f.file_path)][:10]
        prompt = SUMMARY_PROMPT.format(
            folders="\n".join(f"- {k}: {v} files" for k, v in folders.items()),
            distribution="\n".join(f"- {k}: {v} files" for k, v in distribution.items()),
            key_files="\n\n".join(f"{f.file_path}:\n{f.content[:500]}" for f in key_files),
        )
        reply = await self.backend.complete(
            [
                system_message("You are a software architect. Return the project summary in JSON format."),
                user_message(prompt),
            ]
        )
        return self.parser.parse_project_summary(reply)

    def heuristic_summary(
        self,
        files: list[SourceFile],
        folders: dict[str, int],
        distribution: dict[str, int],
        project_name: str = "",
    ) -> ProjectSummary:
        tech_stack = detect_technology_stack(files, distribution)
        architecture = detect_architecture(folders)
        business_logic = extract_business_logic(files, folders)
        return ProjectSummary(
            project_name=project_name,
            description=(
                f"A {architecture}-based application built with {tech_stack or 'mixed technologies'}. "
                f"The project implements {business_logic} functionality with a focus on "
                "maintainability and scalability."
            ),
            technology_stack=tech_stack,
            architecture=architecture,
            business_logic=business_logic,
            core_functionality=detect_core_functionality(files),
            key_features=identify_key_features(files, folders),
            folder_structure=dict(folders),
            file_type_distribution=dict(distribution),
            main_components=identify_main_components(folders),
            primary_language=primary_language(distribution),
            dependencies=extract_dependencies(files),
        )


def primary_language(distribution: dict[str, int]) -> str:
    candidates = [(k, v) for k, v in distribution.items() if k not in _NON_LANGUAGE_TYPES]
    if not candidates:
        return "Mixed"
    # Ties go to the type seen first
    return max(candidates, key=lambda kv: kv[1])[0]


def detect_technology_stack(files: list[SourceFile], distribution: dict[str, int]) -> str:
    stacks: list[str] = []
    for file_types, label in _STACK_BY_TYPE:
        if any(t.value in distribution for t in file_types):
            stacks.append(label)
    if any("@angular" in f.content for f in files):
        stacks.append("Angular")
    if any("react" in f.content for f in files):
        stacks.append("React")
    if FileType.SQL.value in distribution or any(
        "SqlConnection" in f.content or "EntityFramework" in f.content for f in files
    ):
        stacks.append("SQL Database")
    return ", ".join(dict.fromkeys(stacks))


def detect_architecture(folders: dict[str, int]) -> str:
    names = [name.lower() for name in folders]

    def has(fragment: str) -> bool:
        return any(fragment in name for name in names)

    if has("domain") and has("application") and has("infrastructure"):
        return "Clean Architecture (DDD)"
    if has("models") and has("views") and has("controllers"):
        return "MVC (Model-View-Controller)"
    if has("services") and has("api"):
        return "Service-Oriented Architecture"
    if has("components") and has("services"):
        return "Component-Based Architecture"
    if has("layers") or has("business") or has("data"):
        return "Layered Architecture"
    return "Custom Architecture"


def extract_business_logic(files: list[SourceFile], folders: dict[str, int]) -> str:
    detected = []
    for keyword, label in BUSINESS_KEYWORDS.items():
        in_folders = any(keyword in name.lower() for name in folders)
        in_paths = any(keyword in f.file_path.lower() for f in files)
        if in_folders or in_paths:
            detected.append(label)
    return ", ".join(dict.fromkeys(detected)) if detected else "General Purpose Application"


def detect_core_functionality(files: list[SourceFile]) -> str:
    def any_content(*needles: str) -> bool:
        return any(needle in f.content for f in files for needle in needles)

    functionalities = []
    if any_content("[ApiController]", "@RestController", "app.get("):
        functionalities.append("RESTful API Services")
    if any_content("DbContext", "@Entity", "SELECT", "INSERT"):
        functionalities.append("Database Operations")
    if any(f.file_path.endswith((".html", ".jsx", ".tsx", ".vue")) for f in files):
        functionalities.append("User Interface")
    if any_content("authentication", "jwt", "login", "authorize"):
        functionalities.append("Authentication & Authorization")
    if any_content("HttpClient", "axios", "fetch"):
        functionalities.append("External API Integration")
    return ", ".join(functionalities) if functionalities else "Core application logic and data processing"


def identify_key_features(files: list[SourceFile], folders: dict[str, int]) -> list[str]:
    def any_content(*needles: str) -> bool:
        return any(needle in f.content for f in files for needle in needles)

    features = []
    if any_content("OpenAI", "ChatGPT", "MachineLearning", "genai"):
        features.append("AI-Powered Analysis")
    if any_content("SignalR", "WebSocket", "socket.io"):
        features.append("Real-Time Communication")
    if any_content("ZipFile", "FileStream", "Upload"):
        features.append("File Upload & Processing")
    if any_content("LibGit2", "GitRepository"):
        features.append("Git Repository Integration")
    if any("report" in name.lower() for name in folders):
        features.append("Comprehensive Reporting")
    if any("dashboard" in f.file_path.lower() for f in files):
        features.append("Analytics Dashboard")
    return features or ["Data Processing", "Business Logic", "User Management"]


def identify_main_components(folders: dict[str, int]) -> list[str]:
    components = [
        f"{name} ({count} files)"
        for name, count in folders.items()
        if len(name) > 3 and count > 5
    ]
    return components[:10]


def extract_dependencies(files: list[SourceFile]) -> list[str]:
    dependencies = []

    package_json = next((f for f in files if f.file_path.endswith("package.json")), None)
    if package_json is not None:
        if '"@angular/' in package_json.content:
            dependencies.append("Angular Framework")
        if '"react"' in package_json.content:
            dependencies.append("React Library")
        if '"vue"' in package_json.content:
            dependencies.append("Vue.js Framework")

    csproj = next((f for f in files if f.file_path.endswith(".csproj")), None)
    if csproj is not None:
        if "EntityFrameworkCore" in csproj.content:
            dependencies.append("Entity Framework Core")
        if "Swashbuckle" in csproj.content:
            dependencies.append("Swagger/OpenAPI")
        if "SignalR" in csproj.content:
            dependencies.append("SignalR")

    requirements = next((f for f in files if f.file_path.endswith("requirements.txt")), None)
    if requirements is not None:
        for line in requirements.content.splitlines():
            name = line.split("#", 1)[0].strip()
            for sep in ("==", ">=", "<=", "~=", "[", ";", " "):
                name = name.split(sep, 1)[0]
            if name:
                dependencies.append(name)

    return dependencies[:10]
