import textwrap
import typing

from cqrsgen.generator import analyzer, diagnostics as diag, discovery, models
from cqrsgen.generator.settings import GeneratorSettings
from cqrsgen.markers import ORDER_LAST
from tests import sources


def discover(
    extra: typing.Mapping[str, str] | None = None,
    settings: GeneratorSettings = GeneratorSettings(),
) -> typing.Tuple[typing.Dict[str, models.HandlerDescriptor], typing.List[diag.Diagnostic]]:
    modules = {"app.behaviors": sources.BEHAVIORS, "app.features": sources.FEATURES}
    modules.update({name: textwrap.dedent(source) for name, source in (extra or {}).items()})
    model = sources.declarations(modules)
    collector = diag.Diagnostics()
    definitions = analyzer.DecoratorShapeAnalyzer(model, settings, collector).analyze()
    handlers = discovery.HandlerDiscoverer(model, settings, definitions, collector).discover()
    return {handler.name: handler for handler in handlers}, list(collector)


def test_handlers_of_every_contract_are_discovered():
    handlers, diagnostics = discover()

    assert list(handlers) == ["CreateOrderHandler", "GetOrderHandler", "NotifyWarehouseHandler", "NotifyBillingHandler"]
    assert [handler.kind for handler in handlers.values()] == [
        models.HandlerKind.COMMAND,
        models.HandlerKind.QUERY,
        models.HandlerKind.NOTIFICATION,
        models.HandlerKind.NOTIFICATION,
    ]
    assert diagnostics == []


def test_request_and_response_types_are_qualified():
    handlers, _ = discover()

    create = handlers["CreateOrderHandler"]
    assert create.concrete_type == models.Expr("app.features.CreateOrderHandler", frozenset({"app.features"}))
    assert create.contract_type == models.Expr(
        "cqrsgen.CommandHandler[app.features.CreateOrderCommand, uuid.UUID]",
        frozenset({"cqrsgen", "app.features", "uuid"}),
    )
    assert create.request_type.text == "app.features.CreateOrderCommand"
    assert create.response_type.text == "uuid.UUID"
    assert handlers["NotifyBillingHandler"].response_type == models.NONE_EXPR
    assert handlers["NotifyBillingHandler"].request_type.text == "app.features.OrderPlacedEvent"


def test_markers_on_the_request_are_read_syntactically():
    handlers, _ = discover()

    usages = handlers["CreateOrderHandler"].decorators
    assert [(usage.marker_name, usage.order, usage.position) for usage in usages] == [
        ("Audited", 2, 0),
        ("Retried", 1, 1),
    ]
    assert usages[1].arguments == (models.Expr("3"),)
    assert usages[1].subject == "app.features.CreateOrderCommand@Retried"
    assert handlers["GetOrderHandler"].decorators[0].order == ORDER_LAST
    assert handlers["NotifyWarehouseHandler"].decorators == ()


def test_generic_and_abstract_classes_are_not_handlers():
    handlers, _ = discover(
        {
            "app.extra": """
                import abc

                import cqrsgen
                from cqrsgen.types import ReqT
                from app.features import CreateOrderCommand


                class BaseHandler(cqrsgen.QueryHandler[ReqT, int]):
                    pass


                class AbstractHandler(cqrsgen.CommandHandler[CreateOrderCommand, int], abc.ABC):
                    pass
            """,
        },
    )

    assert "BaseHandler" not in handlers
    assert "AbstractHandler" not in handlers


def test_void_commands_and_inherited_contracts():
    handlers, _ = discover(
        {
            "app.extra": """
                import cqrsgen
                from app.features import CreateOrderCommand


                class CancelOrderCommand(cqrsgen.Command):
                    pass


                class CancelOrderHandler(cqrsgen.VoidCommandHandler[CancelOrderCommand]):
                    async def handle(self, request: CancelOrderCommand) -> None:
                        pass


                class ArchiveOrderHandler(cqrsgen.CommandHandler[CancelOrderCommand, None]):
                    async def handle(self, request: CancelOrderCommand) -> None:
                        pass


                class SpecialCreateOrderHandler(CancelOrderHandler):
                    pass
            """,
        },
    )

    assert handlers["CancelOrderHandler"].kind is models.HandlerKind.COMMAND_VOID
    assert handlers["CancelOrderHandler"].contract_type.text == "cqrsgen.VoidCommandHandler[app.extra.CancelOrderCommand]"
    assert handlers["ArchiveOrderHandler"].kind is models.HandlerKind.COMMAND_VOID
    assert handlers["SpecialCreateOrderHandler"].contract_type == handlers["CancelOrderHandler"].contract_type


def test_non_literal_arguments_and_markers_without_call_are_reported():
    handlers, diagnostics = discover(
        {
            "app.extra": """
                import cqrsgen
                from app.generated import markers

                DEFAULT = 5


                @markers.Retried(DEFAULT, order=len("ab"), jitter=True, *[1])
                class RetryMeCommand(cqrsgen.Command):
                    pass


                @markers.Audited
                class AuditMeCommand(cqrsgen.Command):
                    pass


                class RetryMeHandler(cqrsgen.CommandHandler[RetryMeCommand, int]):
                    pass


                class AuditMeHandler(cqrsgen.CommandHandler[AuditMeCommand, int]):
                    pass
            """,
        },
    )

    retry = handlers["RetryMeHandler"].decorators[0]
    assert retry.arguments == (None, None)
    assert retry.order == ORDER_LAST
    assert retry.keywords == (("jitter", models.Expr("True")),)
    assert handlers["AuditMeHandler"].decorators == ()
    assert [(item.code, item.subject) for item in diagnostics] == [
        ("CQG006", "app.extra.RetryMeCommand@Retried"),
        ("CQG006", "app.extra.RetryMeCommand@Retried"),
        ("CQG006", "app.extra.RetryMeCommand@Retried"),
        ("CQG011", "app.extra.AuditMeCommand@Audited"),
    ]


def test_unknown_decorators_from_the_markers_module_are_kept_for_the_planner():
    handlers, _ = discover(
        {
            "app.extra": """
                import dataclasses

                import cqrsgen
                from app.generated.markers import Missing


                @Missing(order=1)
                @dataclasses.dataclass
                class PingCommand(cqrsgen.Command):
                    pass


                class PingHandler(cqrsgen.CommandHandler[PingCommand, int]):
                    pass
            """,
        },
    )

    assert [usage.marker_name for usage in handlers["PingHandler"].decorators] == ["Missing"]


def test_duplicate_handlers_are_dropped():
    model = sources.declarations(
        {
            "app.features": sources.FEATURES,
            "app.extra": """
                import cqrsgen
                from app.features import GetOrderQuery


                class TwiceHandler(cqrsgen.QueryHandler[GetOrderQuery, str], cqrsgen.QueryHandler[GetOrderQuery, str]):
                    pass
            """,
        },
    )

    handlers = discovery.HandlerDiscoverer(model, GeneratorSettings(), (), diag.Diagnostics()).discover()

    assert [handler.name for handler in handlers].count("TwiceHandler") == 1
