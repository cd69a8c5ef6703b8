class WizardError(Exception):
    """Base class for all errors raised by the wizard core."""


class ModelValidationError(WizardError):
    """A model setter received a value outside its domain."""


class InvariantViolationError(WizardError):
    """Cross-field counts disagree in a way no screen can produce."""


class FixedTopologyError(WizardError):
    """Nodes were added or removed while the scenario fixes the node count."""


class EmptyAddressError(WizardError):
    """A node still has no ring-1 address."""


class AlreadyConfiguredError(WizardError):
    """The item is already present in the system configuration."""


class ProductNotFoundError(WizardError):
    pass


class ScenarioNotFoundError(WizardError):
    pass


class GraphError(WizardError):
    """The step graph is malformed or was traversed with an unknown key."""
