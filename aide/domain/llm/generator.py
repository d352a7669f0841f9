"""
Text generation capability used by the planner and coder agents.

``TemplateGenerator`` is the deterministic offline implementation.
``ChatModelGenerator`` adapts any LangChain chat model.
"""

from typing import Protocol
import re

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from aide.domain.errors import GenerationFailure


PLANNER_ROLE = (
    "You are a senior software architect. Break the user's request into a "
    "development plan covering architecture, implementation, testing and deployment."
)

CODER_ROLE = (
    "You are an expert TypeScript developer. Implement the request as a single "
    "module with exported, typed functions and explicit error handling."
)


class TextGenerator(Protocol):
    """LLM generation capability"""

    async def generate(self, system_role: str, user_prompt: str) -> str:
        ...


def to_pascal_case(text: str) -> str:
    words = re.findall(r"[A-Za-z0-9]+", text)
    return "".join(word[:1].upper() + word[1:].lower() for word in words) or "Feature"


def task_subject(user_prompt: str) -> str:
    """First non-empty line of a prompt"""
    for line in user_prompt.splitlines():
        if line.strip():
            return line.strip()
    return ""


class TemplateGenerator:
    """Deterministic generator rendering fixed templates per role"""

    def __init__(self):
        self.templates = {
            PLANNER_ROLE: self.render_plan,
            CODER_ROLE: self.render_code,
        }

    async def generate(self, system_role: str, user_prompt: str) -> str:
        render = self.templates.get(system_role)
        if render is None:
            raise GenerationFailure("No template registered for system role")
        return render(task_subject(user_prompt))

    @staticmethod
    def render_plan(subject: str) -> str:
        return f"""Development Plan for: {subject}

1. Architecture Design
   - Identify core components
   - Define data models
   - Plan API structure

2. Implementation Steps
   - Setup project structure
   - Create database schema
   - Build API endpoints
   - Develop UI components

3. Testing Strategy
   - Unit tests
   - Integration tests
   - E2E tests

4. Deployment Plan
   - Build optimization
   - Performance tuning
   - Production deployment
"""

    @staticmethod
    def render_code(subject: str) -> str:
        name = to_pascal_case(subject)
        return f"""// Generated code for: {subject}

export interface {name} {{
  id: number;
  name: string;
  createdAt: Date;
  updatedAt: Date;
}}

const store = new Map<number, {name}>();

export async function create{name}(data: Omit<{name}, "createdAt" | "updatedAt">): Promise<{name}> {{
  try {{
    const now = new Date();
    const record: {name} = {{ ...data, createdAt: now, updatedAt: now }};
    store.set(record.id, record);
    return record;
  }} catch (error) {{
    throw new Error(`Failed to create {name}: ${{error}}`);
  }}
}}

export async function get{name}(id: number): Promise<{name} | null> {{
  return store.get(id) ?? null;
}}

export async function update{name}(id: number, data: Partial<{name}>): Promise<{name}> {{
  const existing = store.get(id);
  if (!existing) {{
    throw new Error(`{name} ${{id}} not found`);
  }}
  const updated: {name} = {{ ...existing, ...data, id, updatedAt: new Date() }};
  store.set(id, updated);
  return updated;
}}

export async function delete{name}(id: number): Promise<boolean> {{
  return store.delete(id);
}}
"""


class ChatModelGenerator:
    """Generator backed by a LangChain chat model"""

    def __init__(self, model: BaseChatModel):
        self.model = model

    async def generate(self, system_role: str, user_prompt: str) -> str:
        message = await self.model.ainvoke([
            SystemMessage(content=system_role),
            HumanMessage(content=user_prompt),
        ])
        content = message.content
        if isinstance(content, str):
            return content
        # Content blocks: keep the text parts
        return "".join(
            block if isinstance(block, str) else block.get("text", "")
            for block in content
        )
