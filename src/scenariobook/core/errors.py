class ScenarioBookError(Exception):
    """Base error for all user-facing scenariobook exceptions."""


class ConfigurationError(ScenarioBookError):
    """Raised when configuration is invalid or incomplete."""


class TemplateNotFoundError(ConfigurationError):
    """Raised when the workbook template is not present in the template store."""


class WorkbookTemplateError(ScenarioBookError):
    """Raised when the template workbook is structurally unusable."""


class MissingEntryError(WorkbookTemplateError):
    """Raised when an expected zip entry is absent from the workbook."""


class SheetNotFoundError(WorkbookTemplateError):
    """Raised when a named sheet cannot be resolved through the workbook relationships."""


class TableNotFoundError(WorkbookTemplateError):
    """Raised when a worksheet has no bound table definition."""


class PayloadError(ScenarioBookError):
    """Raised when a request payload lacks a required identifier."""


class StorageError(ScenarioBookError):
    """Raised when object storage keys or writes fail."""
