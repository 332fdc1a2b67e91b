"""
Error Taxonomy for the Scheduling Model

Two families of errors are raised by the model:

- DefinitionError: raised while the model is being built. Any of these aborts
  construction of the offending definition; a partially built model would
  silently mis-schedule, so nothing is skipped.
- QueryError: raised by lookup/resolve on a built model. These never corrupt
  model state and the caller may recover (e.g. fall back to a conservative
  cost estimate).
"""


class ModelError(Exception):
    """Base class for all scheduling model errors."""


# ============================================================================
# Definition errors (construction time)
# ============================================================================

class DefinitionError(ModelError, ValueError):
    """A definition is invalid and the model cannot be built."""


class DuplicateIdError(DefinitionError):
    def __init__(self, kind: str, ident: str):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} '{ident}' is already defined")


class InvalidCapacityError(DefinitionError):
    pass


class CapacityOverflowError(DefinitionError):
    pass


class UnknownResourceError(DefinitionError):
    def __init__(self, ident: str, context: str = ""):
        self.ident = ident
        where = f" (referenced by {context})" if context else ""
        super().__init__(f"Unknown resource or group '{ident}'{where}")


class NegativeLatencyError(DefinitionError):
    pass


class EmptyCompositionError(DefinitionError):
    pass


class InvalidGroupError(DefinitionError):
    pass


class InvalidDescriptorError(DefinitionError):
    pass


class InvalidParameterError(DefinitionError):
    pass


class ModelFrozenError(DefinitionError):
    """Raised when a definition is added after the model has been built."""


# ============================================================================
# Query errors (per call)
# ============================================================================

class QueryError(ModelError, LookupError):
    """A query against a built model failed. The model is unaffected."""


class UnknownDescriptorError(QueryError):
    def __init__(self, ident: str):
        self.ident = ident
        super().__init__(f"Unknown descriptor '{ident}'")


class UnsupportedFeatureError(QueryError):
    def __init__(self, ident: str, features):
        self.ident = ident
        self.features = frozenset(features)
        names = ", ".join(sorted(self.features))
        super().__init__(
            f"Descriptor '{ident}' requires unsupported feature(s): {names}"
        )


class InvalidIssueCycleError(QueryError):
    pass


class AmbiguousResourceError(QueryError):
    def __init__(self, ident: str, candidates):
        self.ident = ident
        self.candidates = frozenset(candidates)
        super().__init__(
            f"'{ident}' resolves to {len(self.candidates)} candidates; "
            f"the scheduler must choose among {sorted(self.candidates)}"
        )
