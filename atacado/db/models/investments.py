import uuid
from sqlalchemy import Column, String, Text, DateTime, BigInteger, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


class InvestmentCompany(Base):
    __tablename__ = 'investment_companies'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    ticker = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    total_shares = Column(BigInteger, nullable=False)
    current_price = Column(Float, nullable=False)
    valuation = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        UniqueConstraint('organization_id', 'ticker', name='uq_investment_companies_org_ticker'),
    )


class InvestorProfile(Base):
    __tablename__ = 'investor_profiles'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, unique=True)
    balance = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)


class InvestorPortfolio(Base):
    __tablename__ = 'investor_portfolios'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    investor_id = Column(UUID(as_uuid=True), ForeignKey('investor_profiles.id', ondelete='CASCADE'), nullable=False)
    company_id = Column(UUID(as_uuid=True), ForeignKey('investment_companies.id', ondelete='CASCADE'), nullable=False)
    shares = Column(BigInteger, nullable=False, default=0)
    avg_price = Column(Float, nullable=False, default=0)

    company = relationship("InvestmentCompany")

    __table_args__ = (
        UniqueConstraint('investor_id', 'company_id', name='uq_investor_portfolios_investor_company'),
    )


class InvestorGiftedShares(Base):
    __tablename__ = 'investor_gifted_shares'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    investor_id = Column(UUID(as_uuid=True), ForeignKey('investor_profiles.id', ondelete='CASCADE'), nullable=False)
    company_id = Column(UUID(as_uuid=True), ForeignKey('investment_companies.id', ondelete='CASCADE'), nullable=False)
    shares = Column(BigInteger, nullable=False)
    vesting_date = Column(DateTime(timezone=True), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)


class ShareTransaction(Base):
    __tablename__ = 'share_transactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    investor_id = Column(UUID(as_uuid=True), ForeignKey('investor_profiles.id', ondelete='CASCADE'), nullable=False)
    company_id = Column(UUID(as_uuid=True), ForeignKey('investment_companies.id', ondelete='CASCADE'), nullable=False)
    type = Column(String, nullable=False)  # BUY|SELL
    shares = Column(BigInteger, nullable=False)
    price = Column(Float, nullable=False)
    total_value = Column(MONEY, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)


class SharePriceHistory(Base):
    __tablename__ = 'share_price_history'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey('investment_companies.id', ondelete='CASCADE'), nullable=False)
    price = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_share_price_history_company_id_created_at', 'company_id', 'created_at'),
    )


class InvestorDeposit(Base):
    __tablename__ = 'investor_deposits'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    investor_id = Column(UUID(as_uuid=True), ForeignKey('investor_profiles.id', ondelete='CASCADE'), nullable=False)
    amount = Column(MONEY, nullable=False)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|APPROVED|REJECTED
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)


class InvestorWithdrawal(Base):
    __tablename__ = 'investor_withdrawals'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    investor_id = Column(UUID(as_uuid=True), ForeignKey('investor_profiles.id', ondelete='CASCADE'), nullable=False)
    amount = Column(MONEY, nullable=False)
    pix_key = Column(String, nullable=False)
    pix_key_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|APPROVED|REJECTED
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
