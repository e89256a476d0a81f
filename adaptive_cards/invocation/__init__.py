from adaptive_cards.invocation.models import (  # noqa: F401
    ActionEvent,
    CardInteraction,
    CardInteractionType,
    CardInvocation,
    CardResult,
    CardSource,
    CardSpec,
    DeleteOp,
    FeatureSummary,
    InvocationMode,
    MergeOp,
    SetOp,
    SetRoute,
    ValidationIssue,
    ValidationMode,
)
