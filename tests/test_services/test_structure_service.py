"""Tests for the project structure summary."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from repolens.exceptions import LLMUnavailableError
from repolens.models import FileType, SourceFile
from repolens.services.progress import ProgressReporter
from repolens.services.structure_service import (
    StructureService,
    analyze_folder_structure,
    detect_architecture,
    detect_technology_stack,
    extract_business_logic,
    extract_dependencies,
    file_type_distribution,
    identify_main_components,
    is_key_file,
    primary_language,
)


@pytest.fixture
def project_files(csharp_controller, ts_service, python_module, markdown_standards):
    return [csharp_controller, ts_service, python_module, markdown_standards]


def mock_backend(reply=None, error=None):
    backend = MagicMock()
    backend.complete = AsyncMock(return_value=reply, side_effect=error)
    return backend


class TestStructureHelpers:
    """Test the deterministic structure analysis."""

    def test_folder_structure_counts_every_segment(self, project_files):
        """Each folder segment of each path is counted."""
        folders = analyze_folder_structure(project_files)

        assert folders["src"] == 2
        assert folders["Controllers"] == 1
        assert folders["services"] == 1
        assert folders["docs"] == 1
        assert "UserController.cs" not in folders

    def test_file_type_distribution(self, project_files):
        """Distribution is keyed by file type label."""
        assert file_type_distribution(project_files) == {
            "CSharp": 1,
            "TypeScript": 1,
            "Python": 1,
            "Markdown": 1,
        }

    def test_primary_language_ignores_docs(self):
        """Documentation never wins the language vote."""
        assert primary_language({"Markdown": 9, "Python": 2, "Go": 2}) == "Python"
        assert primary_language({"Markdown": 3}) == "Mixed"

    def test_technology_stack(self, project_files):
        """Stack labels come from file types and framework markers."""
        distribution = file_type_distribution(project_files)

        stack = detect_technology_stack(project_files, distribution)

        assert stack == ".NET, Python, TypeScript, Angular"

    @pytest.mark.parametrize(
        "folders,expected",
        [
            ({"Domain": 1, "Application": 1, "Infrastructure": 1}, "Clean Architecture (DDD)"),
            ({"Models": 1, "Views": 1, "Controllers": 1}, "MVC (Model-View-Controller)"),
            ({"Api": 1, "services": 1}, "Service-Oriented Architecture"),
            ({"components": 1, "services": 1}, "Component-Based Architecture"),
            ({"DataAccess": 1}, "Layered Architecture"),
            ({"scripts": 1}, "Custom Architecture"),
        ],
    )
    def test_architecture(self, folders, expected):
        """Folder names decide the architecture label."""
        assert detect_architecture(folders) == expected

    def test_business_logic_from_paths(self, project_files):
        """Business keywords in paths map to domain labels."""
        logic = extract_business_logic(project_files, analyze_folder_structure(project_files))

        assert "Order Management" in logic
        assert "User Management" in logic
        assert "Invoicing" in logic

    def test_main_components_need_enough_files(self):
        """Only folders with long names and more than five files count."""
        components = identify_main_components({"src": 40, "Services": 6, "Models": 5})

        assert components == ["Services (6 files)"]

    def test_dependencies_from_requirements(self):
        """Requirement specifiers and comments are stripped."""
        requirements = SourceFile.from_text(
            "requirements.txt",
            "pydantic>=2.5\n# tooling\nrich==13.7  # console\nopenai[datalib]\n",
            FileType.CONFIGURATION,
        )

        assert extract_dependencies([requirements]) == ["pydantic", "rich", "openai"]

    @pytest.mark.parametrize(
        "path,expected",
        [("src/Program.cs", True), ("web/package.json", True), ("src/Utils.cs", False)],
    )
    def test_key_files(self, path, expected):
        """Entry points, controllers and manifests are key files."""
        assert is_key_file(path) is expected


class TestStructureService:
    """Test the model-backed summary with heuristic fallback."""

    @pytest.mark.asyncio
    async def test_heuristic_without_backend(self, project_files, sink):
        """No backend means the heuristic summary."""
        folders = analyze_folder_structure(project_files)
        distribution = file_type_distribution(project_files)

        summary = await StructureService().summarize(
            project_files,
            folders,
            distribution,
            reporter=ProgressReporter(sink),
            project_name="shop",
        )

        assert summary.project_name == "shop"
        assert summary.primary_language == "CSharp"
        assert summary.architecture == "Service-Oriented Architecture"
        assert summary.file_type_distribution == distribution
        assert sink.percentages == [10]

    @pytest.mark.asyncio
    async def test_model_summary_merged_with_structure(self, project_files):
        """Model fields are kept, structure maps come from the scan."""
        reply = json.dumps(
            {
                "projectName": "",
                "description": "An order portal",
                "architecture": "Layered",
                "keyFeatures": ["Orders"],
            }
        )
        backend = mock_backend(reply=reply)
        folders = analyze_folder_structure(project_files)
        distribution = file_type_distribution(project_files)

        summary = await StructureService(backend=backend).summarize(
            project_files, folders, distribution, project_name="shop"
        )

        assert summary.description == "An order portal"
        assert summary.architecture == "Layered"
        assert summary.key_features == ["Orders"]
        assert summary.project_name == "shop"
        assert summary.primary_language == "CSharp"
        assert summary.folder_structure == folders
        backend.complete.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply,error",
        [(None, LLMUnavailableError("down")), (None, RuntimeError("bad")), ("no json here", None)],
    )
    async def test_falls_back_to_heuristic(self, project_files, reply, error):
        """Model failures and unusable replies fall back to heuristics."""
        service = StructureService(backend=mock_backend(reply=reply, error=error))
        folders = analyze_folder_structure(project_files)
        distribution = file_type_distribution(project_files)

        summary = await service.summarize(project_files, folders, distribution)

        expected = service.heuristic_summary(project_files, folders, distribution)
        assert summary == expected
