import typing

from cqrsgen.generator import diagnostics as diag, models, planner
from cqrsgen.markers import ORDER_LAST
from tests import sources

EXTRA = """
import cqrsgen
from app.behaviors import Mode
from app.generated.markers import Audited, Memoized, Missing, Retried


@Retried(5, 2.5, Mode.FAST, True, "surplus", jitter=False, colour="red")
class ShipOrderCommand(cqrsgen.Command):
    pass


@Missing(order=0)
@Audited()
class CancelOrderCommand(cqrsgen.Command):
    pass


@Memoized()
class ArchiveOrderCommand(cqrsgen.Command):
    pass


@Retried()
class PingCommand(cqrsgen.Command):
    pass


class ShipOrderHandler(cqrsgen.CommandHandler[ShipOrderCommand, int]):
    pass


class CancelOrderHandler(cqrsgen.VoidCommandHandler[CancelOrderCommand]):
    pass


class ArchiveOrderHandler(cqrsgen.CommandHandler[ArchiveOrderCommand, int]):
    pass


class PingHandler(cqrsgen.CommandHandler[PingCommand, str]):
    pass
"""


def arguments(step: models.PlanStep) -> typing.Dict[str, str]:
    return {argument.name: argument.value.text for argument in step.arguments}


def subjects(result, code: str) -> typing.List[str]:
    return [item.subject for item in result.diagnostics if item.code == code]


class TestSampleComposition:
    def setup_method(self) -> None:
        self.result = sources.run({"app.behaviors": sources.BEHAVIORS, "app.features": sources.FEATURES})

    def test_lowest_order_is_the_outermost_wrapper(self) -> None:
        plan = sources.plan_for(self.result, "CreateOrderHandler")

        assert [step.usage.marker_name for step in plan.steps] == ["Audited", "Retried"]
        assert plan.execution_order == ("Retried", "Audited")

    def test_type_parameters_are_closed_over_the_handler_types(self) -> None:
        plan = sources.plan_for(self.result, "CreateOrderHandler")

        assert plan.steps[0].constructed_type == models.Expr(
            "app.behaviors.AuditDecorator[app.features.CreateOrderCommand, uuid.UUID]",
            frozenset({"app.behaviors", "app.features", "uuid"}),
        )

    def test_configuration_values_come_from_the_marker_or_defaults(self) -> None:
        audited, retried = sources.plan_for(self.result, "CreateOrderHandler").steps

        assert arguments(retried) == {
            "inner": "handler",
            "attempts": "3",
            "delay": "1.0",
            "mode": "app.behaviors.Mode.SAFE",
            "jitter": "None",
        }
        assert arguments(audited) == {
            "inner": "handler",
            "clock": "await container.resolve(app.behaviors.Clock)",
            "label": '"x"',
            "retries": "600",
        }

    def test_services_are_resolved_with_substituted_types(self) -> None:
        (memoized,) = sources.plan_for(self.result, "GetOrderHandler").steps

        assert arguments(memoized)["store"] == (
            "await container.resolve(typing.Mapping[app.features.GetOrderQuery, str])"
        )
        assert memoized.arguments[1].value.imports == frozenset({"typing", "app.features"})

    def test_notifications_and_undecorated_handlers_have_no_steps(self) -> None:
        assert sources.plan_for(self.result, "NotifyWarehouseHandler").steps == ()
        assert self.result.diagnostics == ()


def test_equal_orders_keep_the_written_order():
    definition = models.DecoratorDefinition(marker_name="Step", decorator_type=models.Expr("app.Step"))
    handler = models.HandlerDescriptor(
        kind=models.HandlerKind.QUERY,
        concrete_type=models.Expr("app.Handler"),
        contract_type=models.Expr("cqrsgen.QueryHandler[app.Query, int]"),
        request_type=models.Expr("app.Query"),
        response_type=models.Expr("int"),
        decorators=(
            models.DecoratorUsage(marker_name="Step", order=ORDER_LAST, position=0, subject="first"),
            models.DecoratorUsage(marker_name="Step", order=ORDER_LAST, position=1, subject="second"),
            models.DecoratorUsage(marker_name="Step", order=-1, position=2, subject="third"),
        ),
    )

    plan = planner.CompositionPlanner([definition], diag.Diagnostics()).plan(handler)

    assert [step.usage.subject for step in reversed(plan.steps)] == ["third", "first", "second"]


class TestDegradedComposition:
    def setup_method(self) -> None:
        self.result = sources.run(
            {"app.behaviors": sources.BEHAVIORS, "app.features": sources.FEATURES, "app.extra": EXTRA},
        )

    def test_unknown_marker_is_skipped_and_the_others_are_kept(self) -> None:
        plan = sources.plan_for(self.result, "CancelOrderHandler")

        assert plan.execution_order == ("Audited",)
        assert subjects(self.result, "CQG005") == ["app.extra.CancelOrderCommand@Missing"]

    def test_decorator_of_another_contract_is_not_applied(self) -> None:
        plan = sources.plan_for(self.result, "ArchiveOrderHandler")

        assert plan.steps == ()
        assert subjects(self.result, "CQG008") == ["app.extra.ArchiveOrderCommand@Memoized"]

    def test_void_command_closes_the_response_over_none(self) -> None:
        (audited,) = sources.plan_for(self.result, "CancelOrderHandler").steps

        assert audited.constructed_type.text == "app.behaviors.AuditDecorator[app.extra.CancelOrderCommand, None]"

    def test_surplus_positional_arguments_and_unknown_keywords_are_reported(self) -> None:
        (retried,) = sources.plan_for(self.result, "ShipOrderHandler").steps

        assert arguments(retried) == {
            "inner": "handler",
            "attempts": "5",
            "delay": "2.5",
            "mode": "app.behaviors.Mode.FAST",
            "jitter": "True",
        }
        assert subjects(self.result, "CQG012") == ["app.extra.ShipOrderCommand@Retried"]
        assert subjects(self.result, "CQG013") == ["app.extra.ShipOrderCommand@Retried"]

    def test_missing_required_value_falls_back_to_the_language_default(self) -> None:
        (retried,) = sources.plan_for(self.result, "PingHandler").steps

        attempts = retried.arguments[1]
        assert (attempts.name, attempts.value.text) == ("attempts", "0")
        assert attempts.note == "CQG007 attempts falls back to 0"
        assert subjects(self.result, "CQG007") == ["app.extra.PingCommand@Retried"]

    def test_errors_are_isolated_to_their_registration(self) -> None:
        handlers = [plan.handler.name for plan in self.result.plans]

        assert "CreateOrderHandler" in handlers
        assert sources.plan_for(self.result, "CreateOrderHandler").execution_order == ("Retried", "Audited")
        assert [item.code for item in self.result.errors] == ["CQG005", "CQG008"]


def test_decorator_without_constructor_is_built_without_arguments():
    result = sources.run(
        {
            "app.behaviors": """
                import cqrsgen
                from cqrsgen.types import ReqT, ResT


                @cqrsgen.generate_decorator("Bare")
                class BareDecorator(cqrsgen.CommandHandler[ReqT, ResT]):
                    async def handle(self, request: ReqT) -> ResT:
                        raise NotImplementedError
            """,
            "app.features": """
                import cqrsgen
                from app.generated.markers import Bare


                @Bare()
                class PingCommand(cqrsgen.Command):
                    pass


                class PingHandler(cqrsgen.CommandHandler[PingCommand, int]):
                    pass
            """,
        },
    )

    (step,) = sources.plan_for(result, "PingHandler").steps
    assert step.arguments == ()
    assert step.note.startswith("CQG003 app.behaviors.BareDecorator has no constructor")
    assert sources.codes(result) == ["CQG003"]


def test_reserved_parameters_keep_their_default_and_take_no_marker_argument():
    result = sources.run(
        {
            "app.behaviors": """
                import cqrsgen
                from cqrsgen.types import ReqT, ResT


                @cqrsgen.generate_decorator("Ordered")
                class OrderedDecorator(cqrsgen.CommandHandler[ReqT, ResT]):
                    def __init__(
                        self,
                        inner: cqrsgen.CommandHandler[ReqT, ResT],
                        order: int = 3,
                        ttl: int = 60,
                    ) -> None:
                        self._inner = inner

                    async def handle(self, request: ReqT) -> ResT:
                        return await self._inner.handle(request)
            """,
            "app.features": """
                import cqrsgen
                from app.generated.markers import Ordered


                @Ordered(5, order=1)
                class PingCommand(cqrsgen.Command):
                    pass


                class PingHandler(cqrsgen.CommandHandler[PingCommand, int]):
                    pass
            """,
        },
    )

    (step,) = sources.plan_for(result, "PingHandler").steps
    assert arguments(step) == {"inner": "handler", "order": "3", "ttl": "5"}
    assert step.usage.order == 1
    assert sources.codes(result) == []


class TestMarkerValueKinds:
    def setup_method(self) -> None:
        self.result = sources.run(
            {
                "app.behaviors": sources.BEHAVIORS,
                "app.features": """
                    import cqrsgen
                    from app.behaviors import Mode
                    from app.generated.markers import Retried

                    DELAY = 2.0


                    @Retried("three", 2, jitter="yes")
                    class ShipCommand(cqrsgen.Command):
                        pass


                    @Retried(4, DELAY, Mode.FAST)
                    class PackCommand(cqrsgen.Command):
                        pass


                    class ShipHandler(cqrsgen.CommandHandler[ShipCommand, int]):
                        pass


                    class PackHandler(cqrsgen.CommandHandler[PackCommand, int]):
                        pass
                """,
            },
        )

    def test_values_of_another_kind_are_reported_and_replaced(self) -> None:
        (retried,) = sources.plan_for(self.result, "ShipHandler").steps
        notes = {argument.name: argument.note for argument in retried.arguments}

        assert arguments(retried) == {
            "inner": "handler",
            "attempts": "0",
            "delay": "2.0",
            "mode": "app.behaviors.Mode.SAFE",
            "jitter": "None",
        }
        assert notes["attempts"] == "CQG007 attempts falls back to 0"
        assert notes["jitter"] == "CQG006 jitter cannot be read from the marker, falls back to its default None"
        assert notes["delay"] is None
        assert subjects(self.result, "CQG006").count("app.features.ShipCommand@Retried") == 2
        assert subjects(self.result, "CQG007") == ["app.features.ShipCommand@Retried"]

    def test_unreadable_argument_falls_back_to_the_default_with_a_note(self) -> None:
        (retried,) = sources.plan_for(self.result, "PackHandler").steps
        delay = retried.arguments[2]

        assert arguments(retried)["mode"] == "app.behaviors.Mode.FAST"
        assert (delay.name, delay.value.text) == ("delay", "1.0")
        assert delay.note == "CQG006 delay cannot be read from the marker, falls back to its default 1.0"
        assert subjects(self.result, "CQG006").count("app.features.PackCommand@Retried") == 1
