"""Domain layer: errors and schemas."""

from .errors import (
    BatchRenderError,
    DeliveryConfigError,
    DeliveryTransportError,
    ErrorCodes,
    InvalidDataset,
    InvalidDirective,
    InvalidTemplate,
    PipelineError,
    RenderError,
)
from .schemas import (
    Artifact,
    Dataset,
    DeliveryDirective,
    DeliveryMode,
    DeliveryResult,
    DocumentTemplate,
    GenerationReport,
    GroupSpec,
    ItemResult,
    RenderContext,
    TemplateAnalysis,
)

__all__ = [
    "PipelineError",
    "BatchRenderError",
    "InvalidTemplate",
    "InvalidDataset",
    "InvalidDirective",
    "RenderError",
    "DeliveryConfigError",
    "DeliveryTransportError",
    "ErrorCodes",
    "Artifact",
    "Dataset",
    "DeliveryDirective",
    "DeliveryMode",
    "DeliveryResult",
    "DocumentTemplate",
    "GenerationReport",
    "GroupSpec",
    "ItemResult",
    "RenderContext",
    "TemplateAnalysis",
]
