import dataclasses
import enum
import logging
import typing

logger = logging.getLogger("cqrsgen")


class Severity(str, enum.Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclasses.dataclass(frozen=True)
class DiagnosticDescriptor:
    code: str
    severity: Severity
    title: str


SYNTAX_ERROR = DiagnosticDescriptor("CQG001", Severity.ERROR, "Module cannot be parsed")
INVALID_MARKER_NAME = DiagnosticDescriptor("CQG002", Severity.ERROR, "Invalid decorator marker name")
NO_CONSTRUCTOR = DiagnosticDescriptor("CQG003", Severity.ERROR, "Decorator has no constructor")
DUPLICATE_MARKER = DiagnosticDescriptor("CQG004", Severity.ERROR, "Duplicate marker name")
UNKNOWN_MARKER = DiagnosticDescriptor("CQG005", Severity.ERROR, "Unknown marker")
NON_LITERAL_ARGUMENT = DiagnosticDescriptor("CQG006", Severity.WARNING, "Marker argument is not a literal")
DEFAULT_FALLBACK = DiagnosticDescriptor("CQG007", Severity.WARNING, "Configuration value falls back to a default")
INCOMPATIBLE_DECORATOR = DiagnosticDescriptor("CQG008", Severity.ERROR, "Decorator cannot wrap this handler")
NO_INNER_HANDLER = DiagnosticDescriptor("CQG009", Severity.WARNING, "Decorator has no inner handler parameter")
UNRESOLVED_PARAMETER = DiagnosticDescriptor("CQG010", Severity.WARNING, "Parameter type cannot be resolved")
MARKER_NOT_CALLED = DiagnosticDescriptor("CQG011", Severity.WARNING, "Marker is used without a call")
EXTRA_ARGUMENTS = DiagnosticDescriptor("CQG012", Severity.WARNING, "Marker has more arguments than parameters")
UNKNOWN_KEYWORD = DiagnosticDescriptor("CQG013", Severity.WARNING, "Marker keyword matches no parameter")


@dataclasses.dataclass(frozen=True)
class Diagnostic:
    code: str
    severity: Severity
    subject: str
    message: str

    def __str__(self) -> str:
        return f"{self.code} {self.severity.value}: {self.subject}: {self.message}"


class Diagnostics:
    """Collects the diagnostics of one generation pass, in report order."""

    def __init__(self) -> None:
        self._items: typing.List[Diagnostic] = []

    def report(
        self,
        descriptor: DiagnosticDescriptor,
        subject: str,
        message: str,
    ) -> Diagnostic:
        diagnostic = Diagnostic(
            code=descriptor.code,
            severity=descriptor.severity,
            subject=subject,
            message=message,
        )
        self._items.append(diagnostic)
        level = logging.ERROR if descriptor.severity is Severity.ERROR else logging.WARNING
        logger.log(level, "%s %s: %s", descriptor.code, subject, message)
        return diagnostic

    def __iter__(self) -> typing.Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def freeze(self) -> typing.Tuple[Diagnostic, ...]:
        return tuple(self._items)
