"""Pytest configuration and fixtures."""

import pytest

from repolens.config import Settings
from repolens.models import FileType, SourceFile

# C# controller with a hardcoded password and an unguarded lookup
SAMPLE_CSHARP_CONTROLLER = '''using System;
using System.Linq;

namespace Shop.Api.Controllers
{
    public class UserController
    {
        private readonly string connection_string = "Server=db;User=sa;Password=secret123";

        public async Task<User> GetUser(int id)
        {
            var user = _users.FirstOrDefault(u => u.Id == id);
            var name = user.Name;
            await _audit.LogAsync(name);
            return user;
        }
    }
}
'''

# TypeScript service, clean
SAMPLE_TS_SERVICE = '''import { Injectable } from '@angular/core';

/**
 * Loads orders from the API.
 */
@Injectable({ providedIn: 'root' })
export class OrderService {
  constructor(private http: HttpClient) {}

  getOrders(): Observable<Order[]> {
    return this.http.get<Order[]>(this.baseUrl).pipe(catchError(this.handleError));
  }
}
'''

SAMPLE_PYTHON_MODULE = '''"""Invoice helpers."""


def total(items):
    """Sum line totals."""
    return sum(item.price * item.quantity for item in items)
'''

SAMPLE_MARKDOWN_STANDARDS = '''# Team Coding Standards

## Naming Conventions

Use PascalCase for classes and camelCase for locals.

- Classes: `OrderService`
- Locals: `orderCount`

## Error Handling

Always catch and log exceptions at service boundaries.

```csharp
try { Save(); } catch (Exception ex) { _logger.LogError(ex, "Save failed"); }
```

## Empty Section
'''

VALIDATION_BLOCK = '''        if (user == null) throw new ArgumentNullException(nameof(user));
        if (string.IsNullOrEmpty(user.Name)) throw new ArgumentException("Name required");
        if (user.Age < 0) throw new ArgumentException("Age invalid");
'''

SAMPLE_CSHARP_SAVE = f'''public class AccountWriter
{{
    public void Save(User user)
    {{
{VALIDATION_BLOCK}        _repository.Add(user);
    }}
}}
'''

SAMPLE_CSHARP_UPDATE = f'''public class ProfileUpdater
{{
    public void Update(User user)
    {{
{VALIDATION_BLOCK}        _database.Modify(user);
    }}
}}
'''


def make_long_method_source(blocks: int = 39) -> str:
    """C# class whose Process method spans ``3 * blocks + 3`` lines."""
    lines = ["public class Pipeline", "{", "    public void Process()", "    {"]
    for _ in range(blocks):
        lines.extend(["        {", "            Step();", "        }"])
    lines.extend(["    }", "}"])
    return "\n".join(lines)


class RecordingSink:
    """Progress sink that keeps every update."""

    def __init__(self, fail: bool = False):
        self.events: list[tuple[str | None, int, str]] = []
        self.fail = fail

    async def send_progress(self, connection_id, percentage, message):
        if self.fail:
            raise RuntimeError("sink offline")
        self.events.append((connection_id, percentage, message))

    @property
    def percentages(self) -> list[int]:
        return [p for _, p, _ in self.events]


@pytest.fixture
def settings():
    """Demo settings without any .env file."""
    return Settings(
        _env_file=None,
        ai_provider="demo",
        llm_max_retries=2,
        llm_backoff_seconds=0.0,
        llm_timeout_seconds=5.0,
    )


@pytest.fixture
def model_settings():
    """Settings for a configured model provider."""
    return Settings(
        _env_file=None,
        ai_provider="openai",
        openai_api_key="test-key",
        llm_max_retries=1,
        llm_backoff_seconds=0.0,
        llm_timeout_seconds=5.0,
    )


@pytest.fixture
def csharp_controller():
    return SourceFile.from_text(
        "src/Api/Controllers/UserController.cs", SAMPLE_CSHARP_CONTROLLER, FileType.CSHARP
    )


@pytest.fixture
def ts_service():
    return SourceFile.from_text(
        "web/src/app/core/services/order.service.ts", SAMPLE_TS_SERVICE, FileType.TYPESCRIPT
    )


@pytest.fixture
def python_module():
    return SourceFile.from_text("tools/invoices.py", SAMPLE_PYTHON_MODULE, FileType.PYTHON)


@pytest.fixture
def markdown_standards():
    return SourceFile.from_text("docs/STANDARDS.md", SAMPLE_MARKDOWN_STANDARDS, FileType.MARKDOWN)


@pytest.fixture
def duplicated_pair():
    """Two files sharing the same three-line validation block."""
    return [
        SourceFile.from_text("src/AccountWriter.cs", SAMPLE_CSHARP_SAVE, FileType.CSHARP),
        SourceFile.from_text("src/ProfileUpdater.cs", SAMPLE_CSHARP_UPDATE, FileType.CSHARP),
    ]


@pytest.fixture
def long_method_file():
    return SourceFile.from_text("src/Pipeline.cs", make_long_method_source(), FileType.CSHARP)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return RecordingSink(fail=True)
