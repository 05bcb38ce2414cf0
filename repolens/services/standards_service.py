"""Coding standards: extraction from documentation and generation from code."""

import logging
import posixpath
import re
from dataclasses import dataclass

from repolens.exceptions import LLMUnavailableError
from repolens.models import FileType, SourceFile, Standard
from repolens.services.batching import ProgressWindow
from repolens.services.llm_service import ChatBackend, system_message, user_message
from repolens.services.progress import ProgressReporter
from repolens.services.response_parser import ResponseParser

logger = logging.getLogger(__name__)

MAX_SAMPLED_FILES = 20

EXTRACT_FROM_MARKDOWN_PROMPT = """You are a coding standards analyzer. Analyze the following markdown documentation and extract all coding standards, architecture rules, and best practices.

For each standard found, provide:
1. name: Clear identifier for the standard
2. description: Detailed explanation
3. category: Classification (Naming, Architecture, Security, Performance, etc.)
4. examples: Code examples if provided

Markdown Content:
{content}

Return ONLY a JSON array of standards."""

GENERATE_FROM_CODEBASE_PROMPT = """You are a code standards generator. Analyze the following codebase files and derive consistent coding standards, patterns, and best practices being used.

Look for patterns in:
- Naming conventions (classes, methods, variables)
- Code structure and organization
- Error handling approaches
- Documentation style
- Architecture patterns

Files to analyze:
{files}

Return ONLY a JSON array of standards with: name, description, category, techStack, priority, examples, tags."""

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_BULLET_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.+)$")

# Heading keyword -> category, first match wins
_CATEGORY_KEYWORDS = [
    ("naming", "Naming"),
    ("name", "Naming"),
    ("security", "Security"),
    ("auth", "Security"),
    ("performance", "Performance"),
    ("async", "Performance"),
    ("error", "Error Handling"),
    ("exception", "Error Handling"),
    ("logging", "Observability"),
    ("test", "Testing"),
    ("document", "Documentation"),
    ("comment", "Documentation"),
    ("architecture", "Architecture"),
    ("structure", "Architecture"),
    ("layer", "Architecture"),
    ("style", "Code Quality"),
    ("format", "Code Quality"),
]


def category_for_heading(heading: str) -> str:
    lowered = heading.lower()
    for keyword, category in _CATEGORY_KEYWORDS:
        if keyword in lowered:
            return category
    return "General"


def standards_from_markdown(source: SourceFile) -> list[Standard]:
    """Read headings as standard names.

    The first paragraph under a heading becomes the description, bullet items
    and fenced code blocks become examples. Headings with neither are skipped.
    """
    standards: list[Standard] = []
    heading: str | None = None
    paragraph: list[str] = []
    description = ""
    examples: list[str] = []
    fence: list[str] | None = None

    def flush() -> None:
        if heading is None:
            return
        text = description or " ".join(paragraph).strip()
        if text or examples:
            standards.append(
                Standard(
                    name=heading,
                    description=text,
                    category=category_for_heading(heading),
                    is_from_existing_docs=True,
                    source_file=source.file_path,
                    examples=list(examples),
                )
            )

    for line in source.lines:
        stripped = line.strip()

        if stripped.startswith("```"):
            if fence is None:
                fence = []
            else:
                if heading is not None and fence:
                    examples.append("\n".join(fence))
                fence = None
            continue
        if fence is not None:
            fence.append(line)
            continue

        match = _HEADING_RE.match(stripped)
        if match:
            flush()
            heading = match.group(2).strip()
            paragraph, description, examples = [], "", []
            continue

        if heading is None:
            continue

        bullet = _BULLET_RE.match(line)
        if bullet:
            if paragraph and not description:
                description = " ".join(paragraph)
            examples.append(bullet.group(1).strip())
        elif stripped:
            if not description:
                paragraph.append(stripped)
        elif paragraph and not description:
            description = " ".join(paragraph)

    flush()
    return standards


@dataclass
class ProjectAnalysis:
    uses_clean_architecture: bool = False
    uses_feature_based_organization: bool = False
    has_controller_folder: bool = False
    has_service_folder: bool = False
    has_repository_folder: bool = False
    component_count: int = 0
    service_count: int = 0
    controller_count: int = 0


@dataclass
class CodePatterns:
    uses_async_await: bool = False
    uses_dependency_injection: bool = False
    uses_try_catch: bool = False
    uses_logging: bool = False
    uses_entity_framework: bool = False
    uses_observables: bool = False
    uses_catch_error: bool = False
    uses_reactive_forms: bool = False
    uses_angular_material: bool = False
    uses_event_binding: bool = False


_DI_CONSTRUCTOR_RE = re.compile(r"public\s+\w+\([^)]*I\w+[^)]*\)")


def _standard(
    name: str,
    description: str,
    category: str,
    tech_stack: str,
    priority: str,
    tags: list[str],
    examples: list[str],
) -> Standard:
    return Standard(
        name=name,
        description=description,
        category=category,
        tech_stack=tech_stack,
        priority=priority,
        tags=tags,
        examples=examples,
    )


class StandardsGenerator:
    """Derives project-specific standards from folder layout and code patterns."""

    def generate(self, files: list[SourceFile]) -> list[Standard]:
        analysis = self.analyze_project(files)
        patterns = self.analyze_patterns(files)
        builders = {
            "API": lambda: self._api_standards(analysis, patterns),
            "UI": lambda: self._ui_standards(analysis, patterns, files),
            "Database": lambda: self._database_standards(analysis, patterns),
            "General": lambda: self._general_standards(analysis, patterns),
        }
        standards: list[Standard] = []
        for tech_stack in self.detect_tech_stacks(files):
            standards.extend(builders[tech_stack]())
        return standards

    def detect_tech_stacks(self, files: list[SourceFile]) -> list[str]:
        file_types = {f.file_type for f in files}
        names = [f.file_name.lower() for f in files]
        paths = [f.file_path.lower() for f in files]

        stacks = []
        if FileType.CSHARP in file_types and any(
            part in name for name in names for part in ("controller", "service", "repository")
        ):
            stacks.append("API")
        if FileType.TYPESCRIPT in file_types or FileType.HTML in file_types:
            stacks.append("UI")
        if any(part in path for path in paths for part in ("repository", "data", "persistence")):
            stacks.append("Database")
        stacks.append("General")
        return stacks

    def analyze_project(self, files: list[SourceFile]) -> ProjectAnalysis:
        folders = {posixpath.dirname(f.file_path).lower() for f in files}

        def any_folder(*fragments: str) -> bool:
            return any(fragment in folder for folder in folders for fragment in fragments)

        return ProjectAnalysis(
            uses_clean_architecture=(
                any_folder("domain") and any_folder("application") and any_folder("infrastructure")
            ),
            uses_feature_based_organization=any_folder("features"),
            has_controller_folder=any_folder("controller"),
            has_service_folder=any_folder("service"),
            has_repository_folder=any_folder("repository", "persistence"),
            component_count=sum(1 for f in files if f.file_name.lower().endswith(".component.ts")),
            service_count=sum(
                1
                for f in files
                if f.file_name.lower().endswith(".service.ts") or "service.cs" in f.file_name.lower()
            ),
            controller_count=sum(1 for f in files if f.file_name.lower().endswith("controller.cs")),
        )

    def analyze_patterns(self, files: list[SourceFile]) -> CodePatterns:
        patterns = CodePatterns()
        for source in files:
            content = source.content
            if source.file_type == FileType.CSHARP:
                patterns.uses_async_await |= any(s in content for s in ("async ", "await ", "Task<"))
                patterns.uses_dependency_injection |= bool(_DI_CONSTRUCTOR_RE.search(content))
                patterns.uses_try_catch |= "try" in content and "catch" in content
                patterns.uses_logging |= "ILogger" in content or "_logger" in content
                patterns.uses_entity_framework |= "DbContext" in content or "DbSet" in content
            elif source.file_type == FileType.TYPESCRIPT:
                patterns.uses_observables |= "Observable" in content or "subscribe" in content
                patterns.uses_catch_error |= "catchError" in content
                patterns.uses_reactive_forms |= "FormBuilder" in content or "FormGroup" in content
                patterns.uses_angular_material |= "@angular/material" in content
            elif source.file_type == FileType.HTML:
                patterns.uses_event_binding |= "(click)" in content or "(change)" in content
        return patterns

    def _api_standards(self, analysis: ProjectAnalysis, patterns: CodePatterns) -> list[Standard]:
        clean = analysis.uses_clean_architecture
        standards = [
            _standard(
                f"Project Structure - {'Clean Architecture' if clean else 'Layered Architecture'}",
                (
                    "Your project follows Clean Architecture with Domain, Application, and Infrastructure "
                    "layers. Continue maintaining separation of concerns between layers."
                    if clean
                    else "Maintain clear separation between Controllers, Services, and Data Access layers."
                ),
                "Architecture", "API", "Critical",
                ["Architecture", "Structure", "Layers"],
                (
                    [
                        "Domain: Core business entities and interfaces",
                        "Application: Business logic and use cases",
                        "Infrastructure: External dependencies and data access",
                    ]
                    if clean
                    else [
                        "Controllers: HTTP endpoints and routing",
                        "Services: Business logic implementation",
                        "Repositories: Data access layer",
                    ]
                ),
            )
        ]
        if patterns.uses_async_await:
            standards.append(_standard(
                "Async/Await Pattern - Already Implemented",
                "Your project uses async/await for I/O operations. Continue this pattern for all "
                "database calls and external API requests.",
                "Performance", "API", "High",
                ["Async", "Performance", "Best Practice"],
                [
                    "public async Task<ActionResult> GetUsersAsync()",
                    "await _repository.GetAllAsync()",
                    "Avoid blocking calls like .Result or .Wait()",
                ],
            ))
        if patterns.uses_dependency_injection:
            standards.append(_standard(
                "Dependency Injection - Current Pattern",
                "Your project uses constructor-based dependency injection. Continue injecting "
                "dependencies through constructors for better testability.",
                "Architecture", "API", "Critical",
                ["DI", "IoC", "Testing"],
                [
                    "Register in Program.cs: builder.Services.AddScoped<IService, Service>()",
                    "Inject via constructor: public Controller(IService service)",
                    "Avoid using 'new' keyword for services",
                ],
            ))
        if patterns.uses_try_catch:
            standards.append(_standard(
                "Error Handling - Current Implementation",
                "Your project implements try-catch blocks for error handling. Continue this pattern "
                "and ensure all controllers have proper error handling.",
                "Error Handling", "API", "Critical",
                ["Error", "Exception", "Resilience"],
                [
                    "Wrap risky operations in try-catch blocks",
                    "Log errors with appropriate context",
                    "Return consistent error responses",
                    "Don't expose internal error details to clients",
                ],
            ))
        if patterns.uses_logging:
            standards.append(_standard(
                "Logging Pattern - Current Usage",
                "Your project uses ILogger for logging. Continue using structured logging with "
                "appropriate log levels.",
                "Observability", "API", "High",
                ["Logging", "Monitoring", "Debugging"],
                [
                    '_logger.LogInformation("Processing request for {UserId}", userId)',
                    '_logger.LogError(ex, "Error occurred")',
                    "Use appropriate log levels (Info, Warning, Error)",
                    "Avoid logging sensitive data",
                ],
            ))
        if analysis.has_controller_folder and analysis.has_service_folder:
            standards.append(_standard(
                "Service Layer Separation - Detected Pattern",
                "Your project separates Controllers from Services. Controllers should delegate "
                "business logic to services.",
                "Architecture", "API", "High",
                ["Separation", "Services", "Controllers"],
                [
                    "Controllers: Handle HTTP, routing, and validation",
                    "Services: Implement business logic",
                    "Avoid business logic in controllers",
                    "Keep controllers thin",
                ],
            ))
        return standards

    def _ui_standards(
        self, analysis: ProjectAnalysis, patterns: CodePatterns, files: list[SourceFile]
    ) -> list[Standard]:
        ui_files = [f for f in files if f.file_type in (FileType.TYPESCRIPT, FileType.HTML)]
        component_count = sum(1 for f in ui_files if ".component." in f.file_name)
        service_count = sum(1 for f in ui_files if ".service." in f.file_name)

        standards = []
        if analysis.uses_feature_based_organization:
            standards.append(_standard(
                "Feature-Based Organization - Current Structure",
                "Your project uses feature-based folder organization. Continue organizing code by "
                "feature rather than by technical type.",
                "Architecture", "UI", "Critical",
                ["Organization", "Features", "Structure"],
                [
                    "features/dashboard/ - All dashboard-related code",
                    "features/reports/ - All reports-related code",
                    "Shared components in shared/ folder",
                    "Core services in core/services/",
                ],
            ))
        if component_count:
            standards.append(_standard(
                "Component-Based Architecture - Detected Pattern",
                f"Your project has {component_count} components. Continue breaking UI into reusable, "
                "self-contained components with single responsibility.",
                "Architecture", "UI", "Critical",
                ["Components", "Reusability", "Architecture"],
                [
                    "Create focused components (under 300 lines)",
                    "Use @Input() and @Output() for communication",
                    "Follow naming: feature-name.component.ts",
                    "Keep logic separate from presentation",
                ],
            ))
        if patterns.uses_observables:
            standards.append(_standard(
                "Reactive Programming with RxJS - Current Usage",
                "Your project uses RxJS Observables for async operations. Continue this pattern and "
                "always unsubscribe to prevent memory leaks.",
                "State Management", "UI", "High",
                ["RxJS", "Observables", "Async"],
                [
                    "Use async pipe in templates to auto-unsubscribe",
                    "Implement takeUntil pattern with destroy$ subject",
                    "Avoid nested subscriptions",
                    "Use operators like map, switchMap, catchError",
                ],
            ))
        if patterns.uses_catch_error:
            standards.append(_standard(
                "Error Handling - Current Implementation",
                "Your project uses catchError operator for handling errors in observables. Continue "
                "handling errors gracefully with user-friendly messages.",
                "Error Handling", "UI", "Critical",
                ["Error", "UX", "Observables"],
                [
                    "Use catchError in service methods",
                    "Display toast/snackbar messages for errors",
                    "Show loading states during operations",
                    "Provide meaningful error messages to users",
                ],
            ))
        if service_count:
            standards.append(_standard(
                "Service Layer Pattern - Detected Structure",
                f"Your project has {service_count} services handling business logic and HTTP calls. "
                "Keep components thin by delegating to services.",
                "Architecture", "UI", "High",
                ["Services", "Separation", "HTTP"],
                [
                    "Services handle HTTP requests and business logic",
                    "Components handle presentation and user interaction",
                    "Inject services via constructor",
                    "Make services providedIn: 'root' for singletons",
                ],
            ))
        if patterns.uses_reactive_forms:
            standards.append(_standard(
                "Reactive Forms - Current Pattern",
                "Your project uses Reactive Forms. Continue using FormBuilder and validators for "
                "complex forms with proper validation.",
                "Forms", "UI", "High",
                ["Forms", "Validation", "Reactive"],
                [
                    "Use FormBuilder to create forms",
                    "Implement custom validators when needed",
                    "Show validation errors appropriately",
                    "Handle form submission with error handling",
                ],
            ))
        if patterns.uses_angular_material:
            standards.append(_standard(
                "Angular Material - Current UI Library",
                "Your project uses Angular Material components. Continue using Material Design "
                "components for consistent UI/UX.",
                "UI Components", "UI", "Medium",
                ["Material", "Components", "Design"],
                [
                    "Use mat-* components for consistency",
                    "Follow Material Design guidelines",
                    "Customize theme in theme.scss",
                    "Use Material icons",
                ],
            ))
        if patterns.uses_event_binding:
            standards.append(_standard(
                "Template Event Handling - Detected Pattern",
                "Your templates use event binding for user interactions. Keep templates clean by "
                "moving complex logic to component methods.",
                "Templates", "UI", "Medium",
                ["Templates", "Events", "Binding"],
                [
                    'Use (click)="onAction()" for event binding',
                    "Move complex logic to component methods",
                    "Use async pipe for observables in templates",
                    "Use trackBy with *ngFor for performance",
                ],
            ))
        return standards

    def _database_standards(self, analysis: ProjectAnalysis, patterns: CodePatterns) -> list[Standard]:
        standards = []
        if patterns.uses_entity_framework or analysis.has_repository_folder:
            standards.append(_standard(
                "Repository Pattern - Detected Structure",
                (
                    "Your project uses Repository pattern for data access. Continue abstracting "
                    "database operations behind repository interfaces."
                    if analysis.has_repository_folder
                    else "Consider implementing Repository pattern to abstract data access logic."
                ),
                "Architecture", "Database", "High",
                ["Repository", "Data Access", "Abstraction"],
                [
                    "Define IRepository<T> interface",
                    "Implement concrete repositories in Infrastructure",
                    "Inject repositories into services",
                    "Keep database logic out of controllers",
                ],
            ))
        if patterns.uses_entity_framework:
            standards.append(_standard(
                "Entity Framework - Current ORM",
                "Your project uses Entity Framework. Use async methods and avoid common pitfalls "
                "like N+1 queries.",
                "Data Access", "Database", "High",
                ["EF", "ORM", "Performance"],
                [
                    "Use ToListAsync(), FirstOrDefaultAsync() for async operations",
                    "Use Include() for eager loading to avoid N+1",
                    "Use AsNoTracking() for read-only queries",
                    "Avoid loading entire tables - use pagination",
                ],
            ))
        standards.append(_standard(
            "Parameterized Queries",
            "Always use parameterized queries or ORMs to prevent SQL injection attacks.",
            "Security", "Database", "Critical",
            ["Security", "SQL", "Injection"],
            [
                "Use Entity Framework or Dapper with parameters",
                "Never concatenate user input in SQL queries",
                "Use stored procedures with parameters if needed",
                "Validate and sanitize all inputs",
            ],
        ))
        return standards

    def _general_standards(self, analysis: ProjectAnalysis, patterns: CodePatterns) -> list[Standard]:
        standards = []
        if analysis.uses_clean_architecture:
            standards.append(_standard(
                "Clean Architecture - Current Implementation",
                "Your project follows Clean Architecture with Domain, Application, and Infrastructure "
                "layers. Continue maintaining this separation for better testability and "
                "maintainability.",
                "Architecture", "General", "Critical",
                ["Clean Architecture", "Layers", "Separation"],
                [
                    "Domain: Contains entities, enums, and core business rules",
                    "Application: Contains interfaces and business logic contracts",
                    "Infrastructure: Contains implementations and external dependencies",
                    "API: Contains controllers and presentation logic",
                ],
            ))
        standards.append(_standard(
            "Naming Conventions - Detected Pattern",
            "Follow consistent naming conventions throughout the codebase.",
            "Code Quality", "General", "High",
            ["Naming", "Conventions", "Readability"],
            [
                "PascalCase for classes, methods, and properties",
                "camelCase for variables and parameters",
                "Use descriptive names: GetUserById vs Get()",
                "Prefix interfaces with 'I': IRepository",
            ],
        ))
        if patterns.uses_async_await:
            standards.append(_standard(
                "Async Programming - Current Pattern",
                "Your project uses async/await consistently. Continue this pattern across all I/O "
                "operations for better scalability.",
                "Performance", "General", "High",
                ["Async", "Performance", "Scalability"],
                [
                    "Suffix async methods with 'Async'",
                    "Use async all the way (don't mix with blocking calls)",
                    "Avoid .Result or .Wait() - use await",
                    "Return Task<T> for async operations",
                ],
            ))
        standards.append(_standard(
            "Code Documentation",
            "Write clear, concise comments for complex logic and public APIs.",
            "Documentation", "General", "Medium",
            ["Documentation", "Comments", "Clarity"],
            [
                "Document WHY, not WHAT (code shows what)",
                "Use XML comments for public APIs",
                "Keep README files up-to-date",
                "Document architectural decisions",
            ],
        ))
        if analysis.has_controller_folder and analysis.has_service_folder:
            standards.append(_standard(
                "DRY Principle - Reusability Pattern",
                "Your project separates concerns into Controllers, Services, and Repositories. "
                "Continue extracting common functionality to avoid duplication.",
                "Code Quality", "General", "High",
                ["DRY", "Reusability", "Maintainability"],
                [
                    "Extract common logic into shared services",
                    "Use base classes for shared controller functionality",
                    "Create utility classes for repeated operations",
                    "Avoid copy-pasting code between features",
                ],
            ))
        return standards


class StandardsService:
    """Produces the standards the violation stage checks against."""

    def __init__(
        self,
        backend: ChatBackend | None = None,
        parser: ResponseParser | None = None,
        generator: StandardsGenerator | None = None,
    ):
        self.backend = backend
        self.parser = parser or ResponseParser()
        self.generator = generator or StandardsGenerator()

    async def extract_from_markdown(
        self,
        markdown_files: list[SourceFile],
        reporter: ProgressReporter | None = None,
        window: ProgressWindow | None = None,
    ) -> list[Standard]:
        """Pull standards out of documentation files, one file at a time.

        A file whose model call fails contributes nothing; the rest still run.
        """
        reporter = reporter or ProgressReporter()
        window = window or ProgressWindow(0, 100)
        total = len(markdown_files)
        standards: list[Standard] = []

        for i, source in enumerate(markdown_files):
            await reporter.report(
                window.at(i / total), f"Extracting standards from: {source.file_name}"
            )
            if self.backend is None:
                standards.extend(standards_from_markdown(source))
                continue
            try:
                reply = await self.backend.complete(
                    [
                        system_message(
                            "You are a coding standards expert. Extract standards from documentation and return JSON."
                        ),
                        user_message(EXTRACT_FROM_MARKDOWN_PROMPT.format(content=source.content)),
                    ]
                )
            except LLMUnavailableError as e:
                logger.warning(f"Model unavailable for {source.file_path}, reading headings instead: {e}")
                standards.extend(standards_from_markdown(source))
                continue
            except Exception as e:
                logger.warning(f"Standards extraction failed for {source.file_path}: {e}")
                continue
            standards.extend(self.parser.parse_standards(reply, source_file=source.file_path))

        logger.info(f"Extracted {len(standards)} standards from {total} documentation files")
        return standards

    async def generate_from_codebase(
        self,
        code_files: list[SourceFile],
        reporter: ProgressReporter | None = None,
        window: ProgressWindow | None = None,
    ) -> list[Standard]:
        reporter = reporter or ProgressReporter()
        window = window or ProgressWindow(0, 100)
        await reporter.report(window.at(0.1), "Analyzing project structure and code patterns...")

        if self.backend is not None:
            sampled = code_files[:MAX_SAMPLED_FILES]
            await reporter.report(window.at(0.3), f"AI analyzing {len(sampled)} code files for patterns...")
            files = "\n\n".join(f"File: {f.file_path}\n```\n{f.content}\n```" for f in sampled)
            try:
                reply = await self.backend.complete(
                    [
                        system_message(
                            "You are a coding standards expert. Generate standards from code and return JSON."
                        ),
                        user_message(GENERATE_FROM_CODEBASE_PROMPT.format(files=files)),
                    ]
                )
                standards = self.parser.parse_standards(reply)
            except Exception as e:
                logger.warning(f"Standards generation failed, using project analysis: {e}")
                standards = []
            if standards:
                logger.info(f"Generated {len(standards)} standards from codebase")
                return standards
            logger.warning("Model returned no standards, using project analysis")

        await reporter.report(window.at(0.6), "Generating coding standards...")
        standards = self.generator.generate(code_files)
        logger.info(f"Generated {len(standards)} standards from project analysis")
        return standards
