"""initial rti schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2025-10-01 09:12:44.310218

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid(name: str, *args, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), *args, **kwargs)


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # Schools and users
    op.create_table(
        'school_networks',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('code', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_table(
        'schools',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _uuid('network_id', sa.ForeignKey('school_networks.id'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_schools_network_id', 'schools', ['network_id'], unique=False)

    op.create_table(
        'users',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.String(length=20), server_default='TEACHER', nullable=False),
        _uuid('school_id', sa.ForeignKey('schools.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("role in ('ADMIN','TEACHER','SPECIALIST')", name='ck_users_role'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Students
    op.create_table(
        'students',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('grade', sa.String(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        _uuid('user_id', sa.ForeignKey('users.id'), nullable=False),
        _uuid('school_id', sa.ForeignKey('schools.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_students_user_id', 'students', ['user_id'], unique=False)
    op.create_index('ix_students_school_id', 'students', ['school_id'], unique=False)

    op.create_table(
        'assessments',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _uuid('student_id', sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_assessments_score_range'),
    )
    op.create_index('ix_assessments_student_id_date', 'assessments', ['student_id', 'date'], unique=False)

    # Intervention catalogue
    op.create_table(
        'learning_difficulties',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('symptoms', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=30), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'student_difficulties',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('student_id', sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _uuid('difficulty_id', sa.ForeignKey('learning_difficulties.id'), nullable=False),
        sa.Column('severity', sa.String(length=20), server_default='MODERATE', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('identified_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'difficulty_id', name='uq_student_difficulties_pair'),
    )
    op.create_table(
        'base_interventions',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('objective', sa.Text(), nullable=False),
        sa.Column('tier', sa.String(length=10), nullable=False),
        sa.Column('area', sa.String(length=30), nullable=False),
        sa.Column('estimated_time', sa.Integer(), nullable=True),
        sa.Column('frequency', sa.String(length=20), nullable=True),
        sa.Column('materials', sa.Text(), nullable=True),
        sa.Column('scientific_evidence', sa.Text(), nullable=True),
        sa.Column('evidence_source', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_base_interventions_tier', 'base_interventions', ['tier'], unique=False)
    op.create_index('ix_base_interventions_area', 'base_interventions', ['area'], unique=False)

    op.create_table(
        'difficulty_interventions',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('difficulty_id', sa.ForeignKey('learning_difficulties.id', ondelete='CASCADE'), nullable=False),
        _uuid('base_intervention_id', sa.ForeignKey('base_interventions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('effectiveness', sa.Integer(), server_default='3', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('difficulty_id', 'base_intervention_id', name='uq_difficulty_interventions_pair'),
        sa.CheckConstraint('effectiveness >= 1 AND effectiveness <= 5', name='ck_difficulty_interventions_effectiveness'),
    )
    op.create_table(
        'intervention_protocols',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('estimated_duration', sa.Integer(), nullable=True),
        _uuid('base_intervention_id', sa.ForeignKey('base_interventions.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'protocol_steps',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('protocol_id', sa.ForeignKey('intervention_protocols.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('estimated_time', sa.Integer(), nullable=True),
        sa.Column('materials', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_protocol_steps_protocol_id_order', 'protocol_steps', ['protocol_id', 'order'], unique=False)

    op.create_table(
        'interventions',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='ACTIVE', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _uuid('student_id', sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _uuid('base_intervention_id', sa.ForeignKey('base_interventions.id'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_interventions_student_id_status', 'interventions', ['student_id', 'status'], unique=False)
    op.create_index('ix_interventions_base_intervention_id', 'interventions', ['base_intervention_id'], unique=False)

    # Screening
    op.create_table(
        'screening_instruments',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('age_range', sa.String(), nullable=True),
        sa.Column('administration_time', sa.String(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'screening_indicators',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('min_value', sa.Float(), nullable=False),
        sa.Column('max_value', sa.Float(), nullable=False),
        sa.Column('cutoff', sa.Float(), nullable=True),
        _uuid('instrument_id', sa.ForeignKey('screening_instruments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_screening_indicators_instrument_id', 'screening_indicators', ['instrument_id'], unique=False)

    op.create_table(
        'screenings',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('applied_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='IN_PROGRESS', nullable=False),
        _uuid('student_id', sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _uuid('applied_by_id', sa.ForeignKey('users.id'), nullable=False),
        _uuid('instrument_id', sa.ForeignKey('screening_instruments.id'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_screenings_student_id_applied_at', 'screenings', ['student_id', 'applied_at'], unique=False)
    op.create_index('ix_screenings_status', 'screenings', ['status'], unique=False)

    op.create_table(
        'screening_results',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('risk_level', sa.String(length=20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _uuid('screening_id', sa.ForeignKey('screenings.id', ondelete='CASCADE'), nullable=False),
        _uuid('indicator_id', sa.ForeignKey('screening_indicators.id'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('screening_id', 'indicator_id', name='uq_screening_results_pair'),
    )

    # RTI teams
    op.create_table(
        'rti_teams',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _uuid('school_id', sa.ForeignKey('schools.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'rti_team_members',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('team_id', sa.ForeignKey('rti_teams.id', ondelete='CASCADE'), nullable=False),
        _uuid('user_id', sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(length=20), server_default='TEACHER', nullable=False),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('joined_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('left_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_id', 'user_id', name='uq_rti_team_members_pair'),
    )
    op.create_index('ix_rti_team_members_user_id_active', 'rti_team_members', ['user_id', 'active'], unique=False)

    op.create_table(
        'student_teams',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('team_id', sa.ForeignKey('rti_teams.id', ondelete='CASCADE'), nullable=False),
        _uuid('student_id', sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('assigned_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('removed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_id', 'student_id', name='uq_student_teams_pair'),
    )
    op.create_table(
        'rti_meetings',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='SCHEDULED', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        _uuid('team_id', sa.ForeignKey('rti_teams.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_rti_meetings_team_id_date', 'rti_meetings', ['team_id', 'date'], unique=False)

    op.create_table(
        'meeting_participants',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('meeting_id', sa.ForeignKey('rti_meetings.id', ondelete='CASCADE'), nullable=False),
        _uuid('user_id', sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(), nullable=True),
        sa.Column('attended', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('meeting_id', 'user_id', name='uq_meeting_participants_pair'),
    )
    op.create_table(
        'referrals',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        _uuid('student_id', sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _uuid('assigned_to_id', sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _uuid('created_by_id', sa.ForeignKey('users.id'), nullable=False),
        sa.Column('priority', sa.String(length=10), server_default='MEDIUM', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='PENDING', nullable=False),
        sa.Column('external_service_name', sa.String(), nullable=True),
        sa.Column('external_service_contact', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _uuid('team_id', sa.ForeignKey('rti_teams.id', ondelete='SET NULL'), nullable=True),
        _uuid('meeting_id', sa.ForeignKey('rti_meetings.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_referrals_team_id_status', 'referrals', ['team_id', 'status'], unique=False)
    op.create_index('ix_referrals_assigned_to_id', 'referrals', ['assigned_to_id'], unique=False)
    op.create_index('ix_referrals_created_by_id', 'referrals', ['created_by_id'], unique=False)

    op.create_table(
        'tutor_communications',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='DRAFT', nullable=False),
        sa.Column('contact_info', sa.String(), nullable=True),
        _uuid('student_id', sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        _uuid('user_id', sa.ForeignKey('users.id'), nullable=False),
        sa.Column('sent_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tutor_communications_student_id', 'tutor_communications', ['student_id'], unique=False)
    op.create_index('ix_tutor_communications_user_id_created_at', 'tutor_communications', ['user_id', 'created_at'], unique=False)

    # Notifications and audit
    op.create_table(
        'notifications',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('user_id', sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=20), server_default='SYSTEM', nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('read_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_notifications_user_id_created_at', 'notifications', ['user_id', 'created_at'], unique=False)
    op.create_index('idx_notifications_user_id_is_read', 'notifications', ['user_id', 'is_read'], unique=False)

    op.create_table(
        'audit_logs',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        _uuid('actor_user_id', sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        _uuid('target_id', nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_actor_user_id_created_at', 'audit_logs', ['actor_user_id', 'created_at'], unique=False)
    op.create_index('ix_audit_logs_action_type', 'audit_logs', ['action_type'], unique=False)
    op.create_index('ix_audit_logs_target', 'audit_logs', ['target_type', 'target_id'], unique=False)

    # LMS integrations
    op.create_table(
        'platform_integrations',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('platform', sa.String(length=30), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('client_id', sa.String(), nullable=False),
        sa.Column('client_secret', sa.String(), nullable=False),
        sa.Column('redirect_uri', sa.String(), nullable=True),
        sa.Column('scopes', sa.Text(), nullable=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'class_syncs',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('external_class_id', sa.String(), nullable=False),
        sa.Column('class_name', sa.String(), nullable=False),
        _uuid('integration_id', sa.ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('last_synced_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_class_syncs_integration_external', 'class_syncs', ['integration_id', 'external_class_id'], unique=True)

    op.create_table(
        'user_syncs',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('external_user_id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=20), server_default='STUDENT', nullable=False),
        _uuid('integration_id', sa.ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False),
        _uuid('class_sync_id', sa.ForeignKey('class_syncs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('last_synced_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_user_syncs_integration_external', 'user_syncs',
        ['integration_id', 'external_user_id', 'class_sync_id'], unique=True,
    )

    op.create_table(
        'webhooks',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('events', sa.Text(), nullable=False),
        sa.Column('secret', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _uuid('integration_id', sa.ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'lti_deployments',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('deployment_id', sa.String(), nullable=False),
        sa.Column('issuer', sa.String(), nullable=False),
        sa.Column('client_id', sa.String(), nullable=False),
        sa.Column('auth_login_url', sa.String(), nullable=False),
        sa.Column('auth_token_url', sa.String(), nullable=False),
        sa.Column('keyset_url', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _uuid('integration_id', sa.ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('deployment_id'),
    )
    op.create_index('ix_lti_deployments_issuer_client', 'lti_deployments', ['issuer', 'client_id'], unique=False)

    op.create_table(
        'lti_launch_states',
        _uuid('id', server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('nonce', sa.String(), nullable=False),
        _uuid('deployment_id', sa.ForeignKey('lti_deployments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('consumed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('state'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('lti_launch_states')
    op.drop_index('ix_lti_deployments_issuer_client', table_name='lti_deployments')
    op.drop_table('lti_deployments')
    op.drop_table('webhooks')
    op.drop_index('ix_user_syncs_integration_external', table_name='user_syncs')
    op.drop_table('user_syncs')
    op.drop_index('ix_class_syncs_integration_external', table_name='class_syncs')
    op.drop_table('class_syncs')
    op.drop_table('platform_integrations')
    op.drop_index('ix_audit_logs_target', table_name='audit_logs')
    op.drop_index('ix_audit_logs_action_type', table_name='audit_logs')
    op.drop_index('ix_audit_logs_actor_user_id_created_at', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('idx_notifications_user_id_is_read', table_name='notifications')
    op.drop_index('idx_notifications_user_id_created_at', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_tutor_communications_user_id_created_at', table_name='tutor_communications')
    op.drop_index('ix_tutor_communications_student_id', table_name='tutor_communications')
    op.drop_table('tutor_communications')
    op.drop_index('ix_referrals_created_by_id', table_name='referrals')
    op.drop_index('ix_referrals_assigned_to_id', table_name='referrals')
    op.drop_index('ix_referrals_team_id_status', table_name='referrals')
    op.drop_table('referrals')
    op.drop_table('meeting_participants')
    op.drop_index('ix_rti_meetings_team_id_date', table_name='rti_meetings')
    op.drop_table('rti_meetings')
    op.drop_table('student_teams')
    op.drop_index('ix_rti_team_members_user_id_active', table_name='rti_team_members')
    op.drop_table('rti_team_members')
    op.drop_table('rti_teams')
    op.drop_table('screening_results')
    op.drop_index('ix_screenings_status', table_name='screenings')
    op.drop_index('ix_screenings_student_id_applied_at', table_name='screenings')
    op.drop_table('screenings')
    op.drop_index('ix_screening_indicators_instrument_id', table_name='screening_indicators')
    op.drop_table('screening_indicators')
    op.drop_table('screening_instruments')
    op.drop_index('ix_interventions_base_intervention_id', table_name='interventions')
    op.drop_index('ix_interventions_student_id_status', table_name='interventions')
    op.drop_table('interventions')
    op.drop_index('ix_protocol_steps_protocol_id_order', table_name='protocol_steps')
    op.drop_table('protocol_steps')
    op.drop_table('intervention_protocols')
    op.drop_table('difficulty_interventions')
    op.drop_index('ix_base_interventions_area', table_name='base_interventions')
    op.drop_index('ix_base_interventions_tier', table_name='base_interventions')
    op.drop_table('base_interventions')
    op.drop_table('student_difficulties')
    op.drop_table('learning_difficulties')
    op.drop_index('ix_assessments_student_id_date', table_name='assessments')
    op.drop_table('assessments')
    op.drop_index('ix_students_school_id', table_name='students')
    op.drop_index('ix_students_user_id', table_name='students')
    op.drop_table('students')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    op.drop_index('ix_schools_network_id', table_name='schools')
    op.drop_table('schools')
    op.drop_table('school_networks')
