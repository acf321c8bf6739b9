from .controller import ImportWizard
from .reducer import reduce
from .state import SavingProgress, WizardState, WizardStep

__all__ = ["ImportWizard", "reduce", "SavingProgress", "WizardState", "WizardStep"]
