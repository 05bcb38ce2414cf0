"""Project summary and analysis report models."""

from datetime import datetime

from pydantic import Field

from repolens.models.base import DomainModel, new_id, utcnow
from repolens.models.findings import Bug, CodeDuplication, Refactoring, Violation
from repolens.models.standard import Standard


class ProjectSummary(DomainModel):
    """High-level description of the analyzed project."""

    project_name: str = ""
    description: str = ""
    technology_stack: str = ""
    architecture: str = ""
    business_logic: str = ""
    core_functionality: str = ""
    key_features: list[str] = Field(default_factory=list)
    folder_structure: dict[str, int] = Field(default_factory=dict)
    file_type_distribution: dict[str, int] = Field(default_factory=dict)
    main_components: list[str] = Field(default_factory=list)
    primary_language: str = ""
    dependencies: list[str] = Field(default_factory=list)


class AnalysisReport(DomainModel):
    """Immutable snapshot produced once at the end of a pipeline run."""

    id: str = Field(default_factory=new_id)
    repository_id: str = ""
    repository_name: str = ""
    generated_at: datetime = Field(default_factory=utcnow)
    total_files: int = 0
    files_with_violations: int = 0
    files_with_bugs: int = 0
    files_needing_refactoring: int = 0
    files_with_duplications: int = 0
    total_violations: int = 0
    total_bugs: int = 0
    total_refactorings: int = 0
    total_duplications: int = 0
    total_duplicated_lines: int = 0
    execution_time: str = ""
    violations_by_severity: dict[str, int] = Field(default_factory=dict)
    bugs_by_severity: dict[str, int] = Field(default_factory=dict)
    refactorings_by_priority: dict[str, int] = Field(default_factory=dict)
    duplications_by_impact: dict[str, int] = Field(default_factory=dict)
    violations: list[Violation] = Field(default_factory=list)
    bugs: list[Bug] = Field(default_factory=list)
    refactorings: list[Refactoring] = Field(default_factory=list)
    duplications: list[CodeDuplication] = Field(default_factory=list)
    standards: list[Standard] = Field(default_factory=list)
    summary: str = ""
    project_summary: ProjectSummary | None = None

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize with camelCase keys for export."""
        return self.model_dump_json(by_alias=True, indent=indent)
