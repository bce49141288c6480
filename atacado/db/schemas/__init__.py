"""
Domain-split Pydantic schemas.

Re-exports every request/response model so routes can use
`from atacado.db import schemas` and `schemas.Customer`.
"""

from .users import (
    UserBase,
    User,
)
from .organizations import (
    OrganizationBase,
    OrganizationCreate,
    OrganizationUpdate,
    Organization,
    OrganizationMemberCreate,
    OrganizationMemberUpdate,
    OrganizationMember,
)
from .audits import (
    AuditLogBase,
    AuditLogCreate,
    AuditLog,
)
from .notifications import (
    Notification,
    NotificationListResponse,
    WhatsAppSend,
    ReminderRunRequest,
)
from .customers import (
    CustomerBase,
    CustomerCreate,
    CustomerUpdate,
    Customer,
    CustomerCredit,
    ReminderSettings,
    CreditAuditRequest,
    CreditAuditEntry,
    CreditAuditResult,
    CustomerPriceSet,
    CustomerPrice,
    PointsAdjust,
    PointTransaction,
    CustomerPoints,
)
from .catalog import (
    ProductBase,
    ProductCreate,
    ProductUpdate,
    Product,
)
from .orders import (
    OrderItemCreate,
    OrderCreate,
    OrderStatusUpdate,
    OrderItem,
    Order,
    PaginatedOrders,
)
from .finance import (
    BankAccountBase,
    BankAccountCreate,
    BankAccountUpdate,
    BankAccount,
    TransferRequest,
    TransferResult,
    TransactionCreate,
    Transaction,
    BoletoCreate,
    BoletoAction,
    Boleto,
    ReceivableCreate,
    ReceivePayment,
    Receivable,
    ReceivableRow,
    ReceiveResult,
    CardTransaction,
    CardSummaryBucket,
    CardSummary,
    ConfirmBatch,
    ConfirmBatchResult,
    ExpenseCategoryCreate,
    ExpenseCategoryUpdate,
    ExpenseCategory,
    ExpenseCreate,
    ExpenseUpdate,
    ExpensePay,
    Expense,
)
from .hr import (
    EmployeeBase,
    EmployeeCreate,
    EmployeeUpdate,
    Employee,
    EarningsItem,
    EmployeePaymentInput,
    EmployeePaymentBatch,
    EmployeePayment,
    EmployeePaymentBatchResult,
    AcknowledgeRequest,
    PaymentAcknowledgment,
    UnacknowledgedEntry,
)
from .loyalty import (
    PrizeBase,
    PrizeCreate,
    PrizeUpdate,
    Prize,
    RedemptionCreate,
    RedemptionAction,
    Redemption,
    ReferralCreate,
    Referral,
    ReferralConfigUpdate,
    ReferralConfig,
)
from .investments import (
    CompanyCreate,
    Company,
    InvestorProfile,
    DepositCreate,
    Deposit,
    WithdrawalCreate,
    Withdrawal,
    ReviewAction,
    TradeRequest,
    TradeResult,
    GiftSharesRequest,
    GiftedShares,
    PortfolioPosition,
    Portfolio,
)
from .fiscal import (
    InvoiceItemInput,
    InvoiceCreate,
    InvoiceCancel,
    InvoiceItem,
    Invoice,
    InvoiceDocument,
    DailyReportOrder,
    DailyReportProduct,
    DailyReport,
)
from .coupons import (
    CouponBase,
    CouponCreate,
    CouponUpdate,
    Coupon,
    CouponValidate,
    CouponValidation,
)
from .reports import (
    DreRevenue,
    DreExpenseGroup,
    DreExpenses,
    DreResult,
    DreReport,
    CashFlowDay,
    CashFlowReport,
    FinancialAlert,
)
