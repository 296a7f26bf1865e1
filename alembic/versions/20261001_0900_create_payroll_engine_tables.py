"""Create payroll engine tables

Revision ID: 20261001_0900
Revises:
Create Date: 2026-10-01 09:00:00.000000

This migration creates the complete payroll engine schema:
- employees, employee_bank_accounts, increments: employee master data
- social_security_institutions / social_security_registrations
- working_hours_policies, leaves_policies: attendance and overtime policies
- attendances, overtime_requests, leave_applications, holidays: time keeping
- salary_breakups, allowances, bonuses, leave_encashments, deductions: pay items
- loan_requests, advance_salaries: recoveries
- tax_slabs, rebates, eobi_records, provident_funds: statutory master data
- payrolls, payroll_details: confirmed payroll snapshots
- activity_logs: engine activity trail
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSON, ENUM


# revision identifiers, used by Alembic.
revision = '20261001_0900'
down_revision = None
branch_labels = None
depends_on = None


# Enum types are created once in upgrade() and shared between tables
record_status = ENUM('ACTIVE', 'INACTIVE', name='recordstatus', create_type=False)
approval_status = ENUM('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED', name='approvalstatus', create_type=False)
payment_method = ENUM('WITH_SALARY', 'SEPARATELY', name='paymentmethod', create_type=False)
employee_status = ENUM(
    'ACTIVE', 'INACTIVE', 'TERMINATED', 'RESIGNED', 'SUSPENDED',
    name='employeestatus', create_type=False,
)
increment_kind = ENUM('INCREMENT', 'DECREMENT', name='incrementkind', create_type=False)
increment_method = ENUM('AMOUNT', 'PERCENTAGE', name='incrementmethod', create_type=False)
attendance_status = ENUM(
    'present', 'absent', 'late', 'half-day', 'short-day',
    name='attendancestatus', create_type=False,
)
payroll_status = ENUM(
    'DRAFT', 'CONFIRMED', 'APPROVED', 'PAID', 'CANCELLED',
    name='payrollstatus', create_type=False,
)
payment_status = ENUM('PENDING', 'PAID', 'FAILED', name='paymentstatus', create_type=False)
activity_status = ENUM('SUCCESS', 'FAILURE', name='activitystatus', create_type=False)

ENUM_TYPES = (
    record_status, approval_status, payment_method, employee_status, increment_kind,
    increment_method, attendance_status, payroll_status, payment_status, activity_status,
)


def table_exists(table_name: str) -> bool:
    """Check if a table exists."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    return table_name in inspector.get_table_names()


def base_columns():
    """Primary key and timestamps shared by every model table."""
    return [
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def audit_columns():
    return [
        sa.Column('created_by_id', UUID(as_uuid=True), nullable=True),
        sa.Column('updated_by_id', UUID(as_uuid=True), nullable=True),
    ]


def employee_fk():
    return sa.Column(
        'employee_id', UUID(as_uuid=True),
        sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False, index=True,
    )


def money(name: str, nullable: bool = False, **kwargs):
    return sa.Column(name, sa.Numeric(15, 2), nullable=nullable, **kwargs)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUM_TYPES:
        enum_type.create(bind, checkfirst=True)

    # ===========================================
    # POLICIES & SOCIAL SECURITY
    # ===========================================
    if not table_exists('working_hours_policies'):
        op.create_table('working_hours_policies',
            *base_columns(), *audit_columns(),
            sa.Column('name', sa.String(100), nullable=False, unique=True),
            sa.Column('start_working_hours', sa.String(5), nullable=True),
            sa.Column('end_working_hours', sa.String(5), nullable=True),

            sa.Column('half_day_deduction_type', sa.String(20), nullable=True),
            money('half_day_deduction_amount', nullable=True),
            sa.Column('apply_deduction_after_half_days', sa.Integer, nullable=True),
            sa.Column('short_day_deduction_type', sa.String(20), nullable=True),
            money('short_day_deduction_amount', nullable=True),
            sa.Column('apply_deduction_after_short_days', sa.Integer, nullable=True),
            sa.Column('late_deduction_type', sa.String(20), nullable=True),
            sa.Column('late_deduction_percent', sa.Numeric(7, 4), nullable=True),
            sa.Column('apply_deduction_after_lates', sa.Integer, nullable=True),

            sa.Column('overtime_rate', sa.Numeric(7, 4), nullable=True, comment='Multiplier for regular overtime'),
            sa.Column('gazetted_overtime_rate', sa.Numeric(7, 4), nullable=True,
                      comment='Multiplier for holiday / weekly-off overtime'),
            sa.Column('day_overrides', JSON, nullable=True),
            sa.Column('status', record_status, nullable=False),
        )

    if not table_exists('leaves_policies'):
        op.create_table('leaves_policies',
            *base_columns(), *audit_columns(),
            sa.Column('name', sa.String(100), nullable=False, unique=True),
            sa.Column('details', sa.Text, nullable=True),
            sa.Column('status', record_status, nullable=False),
        )

    if not table_exists('social_security_institutions'):
        op.create_table('social_security_institutions',
            *base_columns(),
            sa.Column('code', sa.String(50), nullable=False, unique=True),
            sa.Column('name', sa.String(200), nullable=False),
            sa.Column('province', sa.String(100), nullable=True),
            sa.Column('contribution_rate', sa.Numeric(7, 4), nullable=False,
                      comment='Contribution rate as a percentage of gross salary'),
            sa.Column('status', record_status, nullable=False),
        )

    # ===========================================
    # EMPLOYEES
    # ===========================================
    if not table_exists('employees'):
        op.create_table('employees',
            *base_columns(), *audit_columns(),
            sa.Column('employee_code', sa.String(50), nullable=False, unique=True,
                      comment='Internal employee ID/staff number'),
            sa.Column('employee_name', sa.String(200), nullable=False),
            sa.Column('email', sa.String(255), nullable=True),
            sa.Column('department', sa.String(100), nullable=True),
            sa.Column('designation', sa.String(150), nullable=True),
            sa.Column('joining_date', sa.Date, nullable=True),
            sa.Column('status', employee_status, nullable=False, index=True),
            money('employee_salary', comment='Monthly base package'),

            sa.Column('overtime_applicable', sa.Boolean, nullable=False),
            sa.Column('eobi', sa.Boolean, nullable=False, comment='Employee is registered for EOBI contributions'),
            sa.Column('provident_fund', sa.Boolean, nullable=False),

            sa.Column('working_hours_policy_id', UUID(as_uuid=True),
                      sa.ForeignKey('working_hours_policies.id', ondelete='SET NULL'), nullable=True),
            sa.Column('leaves_policy_id', UUID(as_uuid=True),
                      sa.ForeignKey('leaves_policies.id', ondelete='SET NULL'), nullable=True),
            sa.Column('social_security_institution_id', UUID(as_uuid=True),
                      sa.ForeignKey('social_security_institutions.id', ondelete='SET NULL'), nullable=True),
            sa.Column('notes', sa.Text, nullable=True),
        )

    if not table_exists('social_security_registrations'):
        op.create_table('social_security_registrations',
            *base_columns(),
            employee_fk(),
            sa.Column('institution_id', UUID(as_uuid=True),
                      sa.ForeignKey('social_security_institutions.id', ondelete='RESTRICT'), nullable=False),
            sa.Column('registration_number', sa.String(50), nullable=True),
            sa.Column('registration_date', sa.Date, nullable=False),
            sa.Column('status', record_status, nullable=False),
        )

    if not table_exists('employee_bank_accounts'):
        op.create_table('employee_bank_accounts',
            *base_columns(),
            employee_fk(),
            sa.Column('bank_name', sa.String(150), nullable=False),
            sa.Column('branch_code', sa.String(20), nullable=True),
            sa.Column('account_number', sa.String(34), nullable=False),
            sa.Column('account_title', sa.String(200), nullable=False),
            sa.Column('iban', sa.String(34), nullable=True),
            sa.Column('is_primary', sa.Boolean, nullable=False, comment='Primary account for salary payment'),
            sa.Column('is_active', sa.Boolean, nullable=False),
        )

    if not table_exists('increments'):
        op.create_table('increments',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('effective_date', sa.Date, nullable=False),
            money('salary', comment='New monthly package'),
            sa.Column('kind', increment_kind, nullable=False),
            sa.Column('method', increment_method, nullable=False),
            money('change_amount', nullable=True),
            sa.Column('change_percentage', sa.Numeric(7, 4), nullable=True),
            sa.Column('status', record_status, nullable=False),
        )

    # ===========================================
    # TIME KEEPING
    # ===========================================
    if not table_exists('attendances'):
        op.create_table('attendances',
            *base_columns(),
            employee_fk(),
            sa.Column('date', sa.Date, nullable=False),
            sa.Column('status', attendance_status, nullable=False),
            sa.Column('check_in', sa.DateTime(timezone=True), nullable=True),
            sa.Column('check_out', sa.DateTime(timezone=True), nullable=True),
            sa.Column('late_minutes', sa.Integer, nullable=True),
            sa.Column('working_hours', sa.Numeric(6, 2), nullable=True),
            sa.Column('overtime_hours', sa.Numeric(6, 2), nullable=True),
            sa.UniqueConstraint('employee_id', 'date', name='uq_attendance_employee_date'),
        )

    if not table_exists('overtime_requests'):
        op.create_table('overtime_requests',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('title', sa.String(200), nullable=True),
            sa.Column('overtime_type', sa.String(50), nullable=True),
            sa.Column('date', sa.Date, nullable=False),
            sa.Column('weekday_overtime_hours', sa.Numeric(6, 2), nullable=False),
            sa.Column('holiday_overtime_hours', sa.Numeric(6, 2), nullable=False),
            sa.Column('status', approval_status, nullable=False),
        )

    if not table_exists('leave_applications'):
        op.create_table('leave_applications',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('leave_type', sa.String(100), nullable=True),
            sa.Column('from_date', sa.Date, nullable=False),
            sa.Column('to_date', sa.Date, nullable=False),
            sa.Column('reason', sa.Text, nullable=True),
            sa.Column('status', approval_status, nullable=False),
        )

    if not table_exists('holidays'):
        op.create_table('holidays',
            *base_columns(),
            sa.Column('name', sa.String(150), nullable=False),
            sa.Column('date_from', sa.Date, nullable=False),
            sa.Column('date_to', sa.Date, nullable=False),
            sa.Column('status', record_status, nullable=False),
        )

    # ===========================================
    # PAY ITEMS
    # ===========================================
    if not table_exists('salary_breakups'):
        op.create_table('salary_breakups',
            *base_columns(), *audit_columns(),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('percentage', sa.Numeric(7, 4), nullable=True, comment='Share of the package, in percent'),
            sa.Column('details', JSON, nullable=True),
            sa.Column('sort_order', sa.Integer, nullable=False),
            sa.Column('status', record_status, nullable=False),
        )

    for head_table in ('allowance_heads', 'bonus_types', 'deduction_heads'):
        if not table_exists(head_table):
            op.create_table(head_table,
                *base_columns(),
                sa.Column('name', sa.String(100), nullable=False, unique=True),
            )

    if not table_exists('allowances'):
        op.create_table('allowances',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('allowance_head_id', UUID(as_uuid=True),
                      sa.ForeignKey('allowance_heads.id', ondelete='SET NULL'), nullable=True),
            sa.Column('month', sa.Integer, nullable=False),
            sa.Column('year', sa.Integer, nullable=False),
            money('amount'),
            sa.Column('is_taxable', sa.Boolean, nullable=False),
            sa.Column('payment_method', payment_method, nullable=False),
            sa.Column('status', record_status, nullable=False),
        )

    if not table_exists('bonuses'):
        op.create_table('bonuses',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('bonus_type_id', UUID(as_uuid=True),
                      sa.ForeignKey('bonus_types.id', ondelete='SET NULL'), nullable=True),
            sa.Column('month', sa.Integer, nullable=False),
            sa.Column('year', sa.Integer, nullable=False),
            money('amount'),
            sa.Column('calculation_type', sa.String(20), nullable=True),
            sa.Column('percentage', sa.Numeric(7, 4), nullable=True),
            sa.Column('payment_method', payment_method, nullable=False),
            sa.Column('status', record_status, nullable=False),
        )

    if not table_exists('leave_encashments'):
        op.create_table('leave_encashments',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('month', sa.Integer, nullable=False),
            sa.Column('year', sa.Integer, nullable=False),
            sa.Column('days', sa.Numeric(6, 2), nullable=True),
            money('amount'),
            sa.Column('is_taxable', sa.Boolean, nullable=False),
            sa.Column('status', approval_status, nullable=False),
        )

    if not table_exists('deductions'):
        op.create_table('deductions',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('deduction_head_id', UUID(as_uuid=True),
                      sa.ForeignKey('deduction_heads.id', ondelete='SET NULL'), nullable=True),
            sa.Column('month', sa.Integer, nullable=False),
            sa.Column('year', sa.Integer, nullable=False),
            money('amount'),
            sa.Column('is_taxable', sa.Boolean, nullable=False),
            sa.Column('status', record_status, nullable=False),
        )

    # ===========================================
    # LOANS & ADVANCES
    # ===========================================
    if not table_exists('loan_requests'):
        op.create_table('loan_requests',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('loan_type', sa.String(100), nullable=True),
            money('amount'),
            sa.Column('number_of_installments', sa.Integer, nullable=True),
            sa.Column('repayment_start_month_year', sa.String(7), nullable=True,
                      comment='First repayment period as YYYY-MM'),
            sa.Column('reason', sa.Text, nullable=True),
            sa.Column('status', approval_status, nullable=False),
        )

    if not table_exists('advance_salaries'):
        op.create_table('advance_salaries',
            *base_columns(), *audit_columns(),
            employee_fk(),
            money('amount'),
            sa.Column('deduction_month', sa.String(20), nullable=True, comment="Month as '1', '01' or a month name"),
            sa.Column('deduction_year', sa.String(4), nullable=True),
            sa.Column('deduction_month_year', sa.String(7), nullable=True, comment='Combined YYYY-MM label'),
            sa.Column('reason', sa.Text, nullable=True),
            sa.Column('status', approval_status, nullable=False),
        )

    # ===========================================
    # STATUTORY
    # ===========================================
    if not table_exists('tax_slabs'):
        op.create_table('tax_slabs',
            *base_columns(), *audit_columns(),
            sa.Column('name', sa.String(100), nullable=True),
            money('min_amount'),
            money('max_amount'),
            sa.Column('rate', sa.Numeric(7, 4), nullable=False,
                      comment='Marginal rate on the excess over min_amount, in percent'),
            money('fixed_amount'),
            sa.Column('status', record_status, nullable=False),
            sa.CheckConstraint('max_amount >= min_amount', name='ck_tax_slabs_slab_range'),
        )

    if not table_exists('rebate_natures'):
        op.create_table('rebate_natures',
            *base_columns(),
            sa.Column('name', sa.String(150), nullable=False, unique=True),
        )

    if not table_exists('rebates'):
        op.create_table('rebates',
            *base_columns(), *audit_columns(),
            employee_fk(),
            sa.Column('rebate_nature_id', UUID(as_uuid=True),
                      sa.ForeignKey('rebate_natures.id', ondelete='SET NULL'), nullable=True),
            sa.Column('month_year', sa.String(7), nullable=False, comment='Payroll period as YYYY-MM'),
            money('rebate_amount'),
            sa.Column('status', approval_status, nullable=False),
        )

    if not table_exists('eobi_records'):
        op.create_table('eobi_records',
            *base_columns(), *audit_columns(),
            sa.Column('name', sa.String(100), nullable=False),
            money('amount'),
            money('employer_contribution', nullable=True),
            money('employee_contribution', nullable=True),
            sa.Column('year_month', sa.String(30), nullable=False, comment="'January 2024' or '2024-01'"),
            sa.Column('status', record_status, nullable=False),
        )

    if not table_exists('provident_funds'):
        op.create_table('provident_funds',
            *base_columns(), *audit_columns(),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('percentage', sa.Numeric(7, 4), nullable=False),
            sa.Column('status', record_status, nullable=False),
        )

    # ===========================================
    # PAYROLL
    # ===========================================
    if not table_exists('payrolls'):
        op.create_table('payrolls',
            *base_columns(), *audit_columns(),
            sa.Column('month', sa.Integer, nullable=False),
            sa.Column('year', sa.Integer, nullable=False),
            sa.Column('total_amount', sa.Numeric(18, 2), nullable=False, comment='Sum of detail net salaries'),
            sa.Column('status', payroll_status, nullable=False),
            sa.Column('generated_by_id', UUID(as_uuid=True), nullable=True),
            sa.UniqueConstraint('month', 'year', name='uq_payroll_month_year'),
            sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_payrolls_valid_month'),
        )

    if not table_exists('payroll_details'):
        op.create_table('payroll_details',
            *base_columns(),
            sa.Column('payroll_id', UUID(as_uuid=True),
                      sa.ForeignKey('payrolls.id', ondelete='CASCADE'), nullable=False, index=True),
            sa.Column('employee_id', UUID(as_uuid=True),
                      sa.ForeignKey('employees.id', ondelete='RESTRICT'), nullable=False, index=True),

            # Earnings
            money('basic_salary', comment='Basic Salary breakup component'),
            money('total_allowances'),
            money('overtime_amount'),
            money('bonus_amount'),
            money('leave_encashment_amount'),
            money('gross_salary'),

            # Deductions
            money('total_deductions', comment='Ad-hoc deductions'),
            money('attendance_deduction'),
            money('loan_deduction'),
            money('advance_salary_deduction'),
            money('eobi_deduction'),
            money('provident_fund_deduction'),
            money('tax_deduction'),
            money('social_security_contribution'),
            money('net_salary'),

            sa.Column('payment_status', payment_status, nullable=False),
            sa.Column('payment_method', sa.String(50), nullable=True),
            sa.Column('bank_info', JSON, nullable=True),

            # Breakdowns
            sa.Column('salary_breakup', JSON, nullable=True),
            sa.Column('increment_breakup', JSON, nullable=True),
            sa.Column('allowance_breakup', JSON, nullable=True),
            sa.Column('bonus_breakup', JSON, nullable=True),
            sa.Column('leave_encashment_breakup', JSON, nullable=True),
            sa.Column('deduction_breakup', JSON, nullable=True),
            sa.Column('attendance_breakup', JSON, nullable=True),
            sa.Column('overtime_breakup', JSON, nullable=True),
            sa.Column('loan_breakup', JSON, nullable=True),
            sa.Column('advance_salary_breakup', JSON, nullable=True),
            sa.Column('tax_breakup', JSON, nullable=True),

            sa.UniqueConstraint('payroll_id', 'employee_id', name='uq_payroll_detail_employee'),
        )

    if not table_exists('activity_logs'):
        op.create_table('activity_logs',
            sa.Column('id', UUID(as_uuid=True), primary_key=True),
            sa.Column('user_id', UUID(as_uuid=True), nullable=True, index=True),
            sa.Column('module', sa.String(50), nullable=False, index=True),
            sa.Column('action', sa.String(50), nullable=False),
            sa.Column('entity', sa.String(100), nullable=True),
            sa.Column('entity_id', sa.String(100), nullable=True, comment='ID of the affected record'),
            sa.Column('description', sa.Text, nullable=True),
            sa.Column('status', activity_status, nullable=False),
            sa.Column('error_message', sa.Text, nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(),
                      nullable=False, index=True),
        )


def downgrade() -> None:
    op.drop_table('activity_logs')
    op.drop_table('payroll_details')
    op.drop_table('payrolls')
    op.drop_table('provident_funds')
    op.drop_table('eobi_records')
    op.drop_table('rebates')
    op.drop_table('rebate_natures')
    op.drop_table('tax_slabs')
    op.drop_table('advance_salaries')
    op.drop_table('loan_requests')
    op.drop_table('deductions')
    op.drop_table('leave_encashments')
    op.drop_table('bonuses')
    op.drop_table('allowances')
    op.drop_table('deduction_heads')
    op.drop_table('bonus_types')
    op.drop_table('allowance_heads')
    op.drop_table('salary_breakups')
    op.drop_table('holidays')
    op.drop_table('leave_applications')
    op.drop_table('overtime_requests')
    op.drop_table('attendances')
    op.drop_table('increments')
    op.drop_table('employee_bank_accounts')
    op.drop_table('social_security_registrations')
    op.drop_table('employees')
    op.drop_table('social_security_institutions')
    op.drop_table('leaves_policies')
    op.drop_table('working_hours_policies')

    bind = op.get_bind()
    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(bind, checkfirst=True)
