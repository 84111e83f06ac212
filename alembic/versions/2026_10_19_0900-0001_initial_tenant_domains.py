"""Initial tenant domain tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


domain_type = sa.Enum('CUSTOM', 'SUBDOMAIN', name='domaintype')
domain_status = sa.Enum('PENDING', 'VERIFYING', 'ACTIVE', 'FAILED', 'SUSPENDED', name='domainstatus')
ssl_status = sa.Enum('NONE', 'PENDING', 'ACTIVE', 'EXPIRED', name='sslstatus')
check_type = sa.Enum('SCHEDULED', 'MANUAL', name='checktype')
health_status = sa.Enum('HEALTHY', 'DEGRADED', 'UNHEALTHY', name='healthstatus')
alert_type = sa.Enum('HEALTH', 'LATENCY', 'SSL_EXPIRY', 'CONSECUTIVE_FAILURES', name='alerttype')
alert_severity = sa.Enum('WARNING', 'HIGH', 'CRITICAL', name='alertseverity')


def upgrade() -> None:
    op.create_table(
        'domains',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('hostname', sa.String(length=255), nullable=False),
        sa.Column('domain_type', domain_type, nullable=False),
        sa.Column('status', domain_status, nullable=False),
        sa.Column('provider_hostname_ref', sa.String(length=64), nullable=True),
        sa.Column('provider_zone_ref', sa.String(length=64), nullable=True),
        sa.Column('ssl_status', ssl_status, nullable=False),
        sa.Column('ssl_expires_at', sa.DateTime(), nullable=True),
        sa.Column('consecutive_failures', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_domains_id', 'domains', ['id'])
    op.create_index('ix_domains_tenant_id', 'domains', ['tenant_id'])
    op.create_index('ix_domains_hostname', 'domains', ['hostname'], unique=True)
    op.create_index('ix_domains_status', 'domains', ['status'])

    op.create_table(
        'dns_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('domain_id', sa.Integer(), nullable=False),
        sa.Column('record_type', sa.String(length=10), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('ttl', sa.Integer(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=True),
        sa.Column('proxied', sa.Boolean(), nullable=False),
        sa.Column('provider_record_ref', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['domain_id'], ['domains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('domain_id', 'record_type', 'name', name='uq_dns_record_key')
    )
    op.create_index('ix_dns_records_id', 'dns_records', ['id'])
    op.create_index('ix_dns_records_domain_id', 'dns_records', ['domain_id'])

    op.create_table(
        'domain_health_checks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('domain_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('performed_at', sa.DateTime(), nullable=False),
        sa.Column('check_type', check_type, nullable=False),
        sa.Column('status', health_status, nullable=False),
        sa.Column('response_time_ms', sa.Integer(), nullable=True),
        sa.Column('ssl_days_remaining', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('raw_detail', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['domain_id'], ['domains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_domain_health_checks_id', 'domain_health_checks', ['id'])
    op.create_index('ix_domain_health_checks_domain_id', 'domain_health_checks', ['domain_id'])
    op.create_index('ix_health_checks_domain_performed', 'domain_health_checks', ['domain_id', 'performed_at'])

    op.create_table(
        'domain_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('domain_id', sa.Integer(), nullable=False),
        sa.Column('alert_type', alert_type, nullable=False),
        sa.Column('severity', alert_severity, nullable=False),
        sa.Column('metric_value', sa.Float(), nullable=True),
        sa.Column('threshold_value', sa.Float(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('resolved', sa.Boolean(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['domain_id'], ['domains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_domain_alerts_id', 'domain_alerts', ['id'])
    op.create_index('ix_domain_alerts_domain_id', 'domain_alerts', ['domain_id'])
    op.create_index('ix_domain_alerts_resolved', 'domain_alerts', ['resolved'])

    op.create_table(
        'domain_analytics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('domain_id', sa.Integer(), nullable=False),
        sa.Column('requests_count', sa.BigInteger(), default=0),
        sa.Column('unique_visitors', sa.Integer(), default=0),
        sa.Column('bandwidth_bytes', sa.BigInteger(), default=0),
        sa.Column('cache_hit_rate', sa.Float(), default=0),
        sa.Column('error_rate', sa.Float(), default=0),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['domain_id'], ['domains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('day', 'domain_id', name='uq_domain_analytics')
    )
    op.create_index('ix_domain_analytics_id', 'domain_analytics', ['id'])
    op.create_index('ix_domain_analytics_day', 'domain_analytics', ['day'])
    op.create_index('ix_domain_analytics_domain_id', 'domain_analytics', ['domain_id'])
    op.create_index('ix_domain_analytics_day_domain', 'domain_analytics', ['day', 'domain_id'])


def downgrade() -> None:
    op.drop_table('domain_analytics')
    op.drop_table('domain_alerts')
    op.drop_table('domain_health_checks')
    op.drop_table('dns_records')
    op.drop_table('domains')

    bind = op.get_bind()
    for enum_type in (alert_severity, alert_type, health_status, check_type, ssl_status, domain_status, domain_type):
        enum_type.drop(bind, checkfirst=True)
