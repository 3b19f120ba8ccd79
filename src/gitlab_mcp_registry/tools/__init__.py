"""Per-entity tool registries."""

from .base import ActionSpec, EntityRegistry, EnvGate, ToolDefinition
from .core import CoreRegistry
from .files import FileRegistry
from .integrations import IntegrationRegistry
from .labels import LabelRegistry
from .milestones import MilestoneRegistry
from .refs import RefRegistry
from .releases import ReleaseRegistry
from .snippets import SnippetRegistry
from .variables import VariableRegistry
from .webhooks import WebhookRegistry
from .wiki import WikiRegistry
from .workitems import WorkItemRegistry

# Order matters: on a name collision the first registry wins
REGISTRY_CLASSES: tuple[type[EntityRegistry], ...] = (
    CoreRegistry,
    MilestoneRegistry,
    WorkItemRegistry,
    ReleaseRegistry,
    VariableRegistry,
    WebhookRegistry,
    RefRegistry,
    IntegrationRegistry,
    FileRegistry,
    LabelRegistry,
    WikiRegistry,
    SnippetRegistry,
)

__all__ = [
    "REGISTRY_CLASSES",
    "ActionSpec",
    "CoreRegistry",
    "EntityRegistry",
    "EnvGate",
    "FileRegistry",
    "IntegrationRegistry",
    "LabelRegistry",
    "MilestoneRegistry",
    "RefRegistry",
    "ReleaseRegistry",
    "SnippetRegistry",
    "ToolDefinition",
    "VariableRegistry",
    "WebhookRegistry",
    "WikiRegistry",
    "WorkItemRegistry",
]
