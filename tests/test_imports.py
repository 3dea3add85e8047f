"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_booking_schema(self):
        from bookflow.schemas.booking_schema import Booking, BookingStatus
        assert BookingStatus.PENDING_PERFORMER_ACCEPTANCE == "pending_performer_acceptance"
        assert Booking.model_fields["version"].default == 1

    def test_import_communication_schema(self):
        from bookflow.schemas.communication_schema import CLIENT_RECIPIENT, CommunicationType
        assert CLIENT_RECIPIENT == "user"
        assert CommunicationType.DIRECT_MESSAGE == "direct_message"

    def test_import_do_not_serve_schema(self):
        from bookflow.schemas.do_not_serve_schema import ADMIN_SUBMITTER_ID, DoNotServeStatus
        assert ADMIN_SUBMITTER_ID == "0"
        assert DoNotServeStatus.APPROVED == "approved"


class TestPackageReexports:
    def test_workflow_package(self):
        from bookflow.workflow import BookingStateMachine, BookingTrigger, NotificationDispatcher
        assert BookingStateMachine is not None
        assert BookingTrigger.DEPOSIT_CONFIRMED == "deposit_confirmed"
        assert NotificationDispatcher is not None

    def test_repository_package(self):
        from bookflow.repository import BookingRepository, InMemoryRepository
        assert issubclass(InMemoryRepository, BookingRepository)

    def test_delivery_package(self):
        from bookflow.delivery import DeliveryGateway, LoggingGateway, TwilioGateway
        assert issubclass(LoggingGateway, DeliveryGateway)
        assert issubclass(TwilioGateway, DeliveryGateway)


class TestServiceCatalog:
    def test_catalog_ids_unique(self):
        from bookflow.tools.services import SERVICE_CATALOG, get_all_services
        assert len(SERVICE_CATALOG) == len(get_all_services())

    def test_flat_services_have_show_length(self):
        from bookflow.schemas.performer_schema import RateType
        from bookflow.tools.services import get_all_services
        for service in get_all_services():
            if service.rate_type == RateType.FLAT:
                assert service.duration_minutes


class TestEntryPoints:
    def test_console_demo_imports(self):
        from console_demo import ConsoleSession
        assert "blocked" in ConsoleSession.SCENARIOS

    def test_main_builds_machine(self):
        from main import build_machine
        from bookflow.workflow import BookingStateMachine
        assert isinstance(build_machine(), BookingStateMachine)
