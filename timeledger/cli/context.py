"""Objects shared by every CLI command."""

from typing import Optional

from timeledger.aggregators.notification_deriver import NotificationService
from timeledger.aggregators.revenue_report import RevenueReportEngine
from timeledger.aggregators.time_report import TimeReportEngine
from timeledger.config.settings import LedgerConfig
from timeledger.services.catalog import CatalogService
from timeledger.services.entry_service import ExpenseService, TimeEntryService
from timeledger.services.invoice_builder import InvoiceBuilder
from timeledger.services.payment_ledger import PaymentLedger
from timeledger.services.retry_handler import RetryHandler
from timeledger.services.timer_controller import TimerController
from timeledger.stores.interface import LedgerStore
from timeledger.stores.json_store import JsonFileLedgerStore
from timeledger.utils.clock import Clock, SystemClock


class LedgerApp:
    """Wires settings, store and clock into the ledger services.

    The store is opened on first use so that commands which fail argument
    parsing never touch the ledger file.
    """

    def __init__(
        self,
        config: LedgerConfig,
        user_id: Optional[str] = None,
        ledger_file: Optional[str] = None,
        store: Optional[LedgerStore] = None,
        clock: Optional[Clock] = None,
        debug: bool = False,
    ):
        self.config = config
        self.user_id = user_id or config.ledger_user
        self.ledger_file = ledger_file or config.ledger_file
        self.clock = clock or SystemClock()
        self.debug = debug or config.debug
        self._store = store

    @property
    def store(self) -> LedgerStore:
        if self._store is None:
            self._store = JsonFileLedgerStore(self.ledger_file)
        return self._store

    @property
    def symbol(self) -> str:
        return self.config.currency_symbol

    @property
    def catalog(self) -> CatalogService:
        return CatalogService(self.store)

    @property
    def timers(self) -> TimerController:
        return TimerController(self.store, self.clock)

    @property
    def entries(self) -> TimeEntryService:
        return TimeEntryService(self.store, self.clock)

    @property
    def expenses(self) -> ExpenseService:
        return ExpenseService(self.store, self.clock)

    @property
    def invoices(self) -> InvoiceBuilder:
        return InvoiceBuilder(
            self.store,
            self.clock,
            retry_handler=RetryHandler(max_retries=self.config.invoice_number_max_retries),
            payment_terms_days=self.config.payment_terms_days,
        )

    @property
    def payments(self) -> PaymentLedger:
        return PaymentLedger(self.store, self.clock)

    @property
    def revenue(self) -> RevenueReportEngine:
        return RevenueReportEngine(self.store, self.clock)

    @property
    def time_reports(self) -> TimeReportEngine:
        return TimeReportEngine(self.store, self.clock)

    @property
    def notifications(self) -> NotificationService:
        return NotificationService(
            self.store,
            self.clock,
            upcoming_window_days=self.config.upcoming_invoice_window_days,
            recent_payment_hours=self.config.recent_payment_window_hours,
            currency_symbol=self.config.currency_symbol,
        )
