"""
Investment simulation: investor cash balance, deposits, withdrawals,
share trades with volume-driven price moves, and gifted shares with vesting.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from atacado import audit
from atacado.db import models, schemas
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.clock import as_utc
from atacado.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

BUY_IMPACT = 0.01
SELL_IMPACT = 0.005
SELL_PRICE_FLOOR = 0.5


# Companies and profiles

def list_companies(db: Session, organization_id: uuid.UUID) -> List[models.InvestmentCompany]:
    return (
        db.query(models.InvestmentCompany)
        .filter(models.InvestmentCompany.organization_id == organization_id)
        .order_by(models.InvestmentCompany.ticker)
        .all()
    )


def get_company_or_404(db: Session, organization_id: uuid.UUID, company_id: uuid.UUID) -> models.InvestmentCompany:
    company = (
        db.query(models.InvestmentCompany)
        .filter(models.InvestmentCompany.organization_id == organization_id, models.InvestmentCompany.id == company_id)
        .first()
    )
    if company is None:
        raise NotFoundError("Company not found")
    return company


def create_company(db: Session, organization_id: uuid.UUID, payload: schemas.CompanyCreate) -> models.InvestmentCompany:
    company = models.InvestmentCompany(
        organization_id=organization_id,
        name=payload.name,
        ticker=payload.ticker.upper(),
        description=payload.description,
        total_shares=payload.total_shares,
        current_price=payload.current_price,
        valuation=payload.total_shares * payload.current_price,
    )
    try:
        db.add(company)
        db.flush()
        db.add(models.SharePriceHistory(company_id=company.id, price=company.current_price))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(company)
    return company


def get_profile(db: Session, organization_id: uuid.UUID, customer_id: uuid.UUID, create: bool = True) -> Optional[models.InvestorProfile]:
    """Investor profile of a customer, created with a zero balance on first use (flushed only)."""
    profile = (
        db.query(models.InvestorProfile)
        .filter(models.InvestorProfile.organization_id == organization_id, models.InvestorProfile.customer_id == customer_id)
        .first()
    )
    if profile is None and create:
        customer = (
            db.query(models.Customer)
            .filter(models.Customer.organization_id == organization_id, models.Customer.id == customer_id)
            .first()
        )
        if customer is None:
            raise NotFoundError("Customer not found")
        profile = models.InvestorProfile(organization_id=organization_id, customer_id=customer_id, balance=ZERO)
        db.add(profile)
        db.flush()
    return profile


def _portfolio_row(db: Session, investor_id: uuid.UUID, company_id: uuid.UUID) -> Optional[models.InvestorPortfolio]:
    return (
        db.query(models.InvestorPortfolio)
        .filter(models.InvestorPortfolio.investor_id == investor_id, models.InvestorPortfolio.company_id == company_id)
        .first()
    )


def _gifts(db: Session, investor_id: uuid.UUID, company_id: uuid.UUID) -> List[models.InvestorGiftedShares]:
    return (
        db.query(models.InvestorGiftedShares)
        .filter(models.InvestorGiftedShares.investor_id == investor_id, models.InvestorGiftedShares.company_id == company_id)
        .order_by(models.InvestorGiftedShares.vesting_date)
        .all()
    )


# Deposits and withdrawals

def request_deposit(db: Session, organization_id: uuid.UUID, customer_id: uuid.UUID, amount: Decimal) -> models.InvestorDeposit:
    amount = to_money(amount)
    if amount <= ZERO:
        raise BusinessRuleError("Amount must be greater than zero")
    try:
        profile = get_profile(db, organization_id, customer_id)
        deposit = models.InvestorDeposit(investor_id=profile.id, amount=amount, status='PENDING')
        db.add(deposit)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(deposit)
    return deposit


def _requests_in_org(db: Session, model, organization_id: uuid.UUID, customer_id: Optional[uuid.UUID],
                     status: Optional[str]):
    query = (
        db.query(model)
        .join(models.InvestorProfile, models.InvestorProfile.id == model.investor_id)
        .filter(models.InvestorProfile.organization_id == organization_id)
    )
    if customer_id:
        query = query.filter(models.InvestorProfile.customer_id == customer_id)
    if status:
        query = query.filter(model.status == status)
    return query.order_by(model.created_at.desc()).all()


def list_deposits(db: Session, organization_id: uuid.UUID, customer_id: Optional[uuid.UUID] = None,
                  status: Optional[str] = None) -> List[models.InvestorDeposit]:
    return _requests_in_org(db, models.InvestorDeposit, organization_id, customer_id, status)


def list_withdrawals(db: Session, organization_id: uuid.UUID, customer_id: Optional[uuid.UUID] = None,
                     status: Optional[str] = None) -> List[models.InvestorWithdrawal]:
    return _requests_in_org(db, models.InvestorWithdrawal, organization_id, customer_id, status)


def _deposit_in_org(db: Session, organization_id: uuid.UUID, deposit_id: uuid.UUID) -> models.InvestorDeposit:
    deposit = (
        db.query(models.InvestorDeposit)
        .join(models.InvestorProfile, models.InvestorProfile.id == models.InvestorDeposit.investor_id)
        .filter(models.InvestorProfile.organization_id == organization_id, models.InvestorDeposit.id == deposit_id)
        .first()
    )
    if deposit is None:
        raise NotFoundError("Deposit not found")
    return deposit


def review_deposit(db: Session, organization_id: uuid.UUID, deposit_id: uuid.UUID, action: str,
                   actor_user_id: Optional[uuid.UUID] = None) -> models.InvestorDeposit:
    deposit = _deposit_in_org(db, organization_id, deposit_id)
    if deposit.status != 'PENDING':
        raise BusinessRuleError("Deposit already processed")
    try:
        deposit.status = 'APPROVED' if action == 'approve' else 'REJECTED'
        deposit.processed_at = datetime.now(UTC)
        if action == 'approve':
            profile = db.get(models.InvestorProfile, deposit.investor_id)
            profile.balance = to_money(profile.balance) + to_money(deposit.amount)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(deposit)
    audit.log_safely(
        db,
        action=audit.AuditAction.DEPOSIT_REVIEW,
        target_type="investor_deposit",
        target_id=deposit.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"status": deposit.status, "amount": float(to_money(deposit.amount))},
    )
    return deposit


def request_withdrawal(db: Session, organization_id: uuid.UUID, customer_id: uuid.UUID,
                       payload: schemas.WithdrawalCreate) -> models.InvestorWithdrawal:
    amount = to_money(payload.amount)
    if amount <= ZERO or not payload.pix_key:
        raise BusinessRuleError("Amount and PIX key are required")
    try:
        profile = get_profile(db, organization_id, customer_id)
        if to_money(profile.balance) < amount:
            raise BusinessRuleError("Insufficient balance")
        profile.balance = to_money(profile.balance) - amount
        withdrawal = models.InvestorWithdrawal(
            investor_id=profile.id,
            amount=amount,
            pix_key=payload.pix_key,
            pix_key_type=payload.pix_key_type,
            status='PENDING',
        )
        db.add(withdrawal)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(withdrawal)
    return withdrawal


def review_withdrawal(db: Session, organization_id: uuid.UUID, withdrawal_id: uuid.UUID, action: str,
                      actor_user_id: Optional[uuid.UUID] = None) -> models.InvestorWithdrawal:
    withdrawal = (
        db.query(models.InvestorWithdrawal)
        .join(models.InvestorProfile, models.InvestorProfile.id == models.InvestorWithdrawal.investor_id)
        .filter(models.InvestorProfile.organization_id == organization_id, models.InvestorWithdrawal.id == withdrawal_id)
        .first()
    )
    if withdrawal is None:
        raise NotFoundError("Withdrawal not found")
    if withdrawal.status != 'PENDING':
        raise BusinessRuleError("Withdrawal already processed")
    try:
        withdrawal.status = 'APPROVED' if action == 'approve' else 'REJECTED'
        withdrawal.processed_at = datetime.now(UTC)
        if action == 'reject':
            profile = db.get(models.InvestorProfile, withdrawal.investor_id)
            profile.balance = to_money(profile.balance) + to_money(withdrawal.amount)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(withdrawal)
    audit.log_safely(
        db,
        action=audit.AuditAction.WITHDRAWAL_REVIEW,
        target_type="investor_withdrawal",
        target_id=withdrawal.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"status": withdrawal.status, "amount": float(to_money(withdrawal.amount))},
    )
    return withdrawal


# Trading

def _sellable_shares(db: Session, portfolio: models.InvestorPortfolio, now: datetime) -> Dict[str, Any]:
    gifts = _gifts(db, portfolio.investor_id, portfolio.company_id)
    gifted = sum(g.shares for g in gifts)
    vested = sum(g.shares for g in gifts if as_utc(g.vesting_date) <= now)
    next_vesting = next((g.vesting_date for g in gifts if as_utc(g.vesting_date) > now), None)
    purchased = portfolio.shares - gifted
    return {
        'gifted': gifted,
        'vested': vested,
        'unvested': gifted - vested,
        'sellable': purchased + vested,
        'next_vesting': next_vesting,
    }


def trade(db: Session, organization_id: uuid.UUID, customer_id: uuid.UUID, payload: schemas.TradeRequest) -> Dict[str, Any]:
    """Execute a BUY or SELL at the current price, then move the price by the traded volume."""
    company = get_company_or_404(db, organization_id, payload.company_id)
    shares = payload.shares
    price = company.current_price
    total_value = to_money(Decimal(str(price)) * shares)
    try:
        profile = get_profile(db, organization_id, customer_id)
        portfolio = _portfolio_row(db, profile.id, company.id)
        if payload.type == 'BUY':
            if to_money(profile.balance) < total_value:
                raise BusinessRuleError("Insufficient balance")
            new_price = price * (1 + shares / company.total_shares * BUY_IMPACT)
            profile.balance = to_money(profile.balance) - total_value
            if portfolio is None:
                db.add(models.InvestorPortfolio(investor_id=profile.id, company_id=company.id,
                                                shares=shares, avg_price=price))
            else:
                held = portfolio.shares + shares
                portfolio.avg_price = (portfolio.shares * portfolio.avg_price + float(total_value)) / held
                portfolio.shares = held
        else:
            if portfolio is None or portfolio.shares < shares:
                raise BusinessRuleError("Insufficient shares")
            holding = _sellable_shares(db, portfolio, datetime.now(UTC))
            if holding['sellable'] < shares:
                message = f"Você possui {holding['sellable']} ações disponíveis para venda."
                if holding['unvested'] > 0:
                    message += f" {holding['unvested']} ações ainda estão bloqueadas"
                    if holding['next_vesting'] is not None:
                        message += f" até {holding['next_vesting'].strftime('%d/%m/%Y')}"
                    message += '.'
                raise BusinessRuleError(message)
            new_price = max(price * (1 - shares / company.total_shares * SELL_IMPACT), price * SELL_PRICE_FLOOR)
            profile.balance = to_money(profile.balance) + total_value
            remaining = portfolio.shares - shares
            if remaining == 0:
                db.delete(portfolio)
            else:
                portfolio.shares = remaining
        tx = models.ShareTransaction(
            investor_id=profile.id,
            company_id=company.id,
            type=payload.type,
            shares=shares,
            price=price,
            total_value=total_value,
        )
        db.add(tx)
        company.current_price = new_price
        company.valuation = company.total_shares * new_price
        db.add(models.SharePriceHistory(company_id=company.id, price=new_price))
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("share_trade type=%s ticker=%s shares=%d price=%.4f", payload.type, company.ticker, shares, price)
    return {
        'transaction_id': tx.id,
        'type': payload.type,
        'shares': shares,
        'price': price,
        'total_value': float(total_value),
        'new_price': new_price,
        'balance': float(to_money(profile.balance)),
    }


def gift_shares(db: Session, organization_id: uuid.UUID, payload: schemas.GiftSharesRequest) -> models.InvestorGiftedShares:
    company = get_company_or_404(db, organization_id, payload.company_id)
    try:
        profile = get_profile(db, organization_id, payload.customer_id)
        portfolio = _portfolio_row(db, profile.id, company.id)
        if portfolio is None:
            db.add(models.InvestorPortfolio(investor_id=profile.id, company_id=company.id,
                                            shares=payload.shares, avg_price=0.0))
        else:
            held = portfolio.shares + payload.shares
            portfolio.avg_price = portfolio.shares * portfolio.avg_price / held
            portfolio.shares = held
        gift = models.InvestorGiftedShares(
            investor_id=profile.id,
            company_id=company.id,
            shares=payload.shares,
            vesting_date=payload.vesting_date,
            reason=payload.reason,
        )
        db.add(gift)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(gift)
    return gift


def portfolio(db: Session, organization_id: uuid.UUID, customer_id: uuid.UUID) -> Dict[str, Any]:
    profile = get_profile(db, organization_id, customer_id)
    db.commit()
    now = datetime.now(UTC)
    positions = []
    rows = db.query(models.InvestorPortfolio).filter(models.InvestorPortfolio.investor_id == profile.id).all()
    for row in rows:
        company = row.company
        holding = _sellable_shares(db, row, now)
        current_value = row.shares * company.current_price
        invested = row.shares * row.avg_price
        positions.append({
            'company_id': company.id,
            'ticker': company.ticker,
            'name': company.name,
            'shares': row.shares,
            'gifted_shares': holding['gifted'],
            'vested_shares': holding['vested'],
            'unvested_shares': holding['unvested'],
            'avg_price': round(row.avg_price, 4),
            'current_price': round(company.current_price, 4),
            'current_value': round(current_value, 2),
            'invested_value': round(invested, 2),
            'profit': round(current_value - invested, 2),
        })
    return {
        'investor_id': profile.id,
        'balance': float(to_money(profile.balance)),
        'positions': positions,
        'total_value': round(sum(p['current_value'] for p in positions), 2),
        'total_profit': round(sum(p['profit'] for p in positions), 2),
    }
