"""initial_crm_schema

Revision ID: c0a1e2f3d4b5
Revises:
Create Date: 2026-10-19 10:00:00.000000

CRM 전체 스키마 생성: 테넌트/사용자, 오브젝트/필드/레코드, 워크플로우,
프로젝트/업무, 커뮤니케이션, 파일.
Create the full CRM schema.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = 'c0a1e2f3d4b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', UUID(as_uuid=True), primary_key=True)


def _org() -> sa.Column:
    return sa.Column('organization_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)


def _fk(name: str, target: str, ondelete: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, UUID(as_uuid=True), sa.ForeignKey(f'{target}.id', ondelete=ondelete), nullable=nullable)


def _created() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def _updated() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def upgrade() -> None:
    # --- 테넌트/사용자 (Tenancy and users) ---
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _created(),
        _updated(),
    )
    op.create_table(
        'roles',
        _id(),
        _org(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        _created(),
        sa.UniqueConstraint('organization_id', 'name', name='uq_role_org_name'),
        sa.UniqueConstraint('organization_id', 'level', name='uq_role_org_level'),
    )
    op.create_table(
        'users',
        _id(),
        _org(),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('avatar', sa.String(500), nullable=True),
        sa.Column('preferences', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        _created(),
        _updated(),
    )
    op.create_table(
        'verification_codes',
        _id(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('code', sa.String(6), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
    )
    op.create_index('ix_verification_codes_email_code', 'verification_codes', ['email', 'code'])

    # --- 오브젝트/필드/레코드 (Objects, fields, records) ---
    op.create_table(
        'crm_objects',
        _id(),
        _org(),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('type', sa.String(20), server_default='CUSTOM', nullable=False),
        sa.Column('icon', sa.String(10), nullable=True),
        sa.Column('color', sa.String(7), nullable=True),
        sa.Column('settings', sa.JSON(), nullable=True),
        sa.Column('schema', sa.JSON(), nullable=True),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
        _updated(),
        sa.UniqueConstraint('organization_id', 'name', name='uq_crm_object_org_name'),
    )
    op.create_table(
        'fields',
        _id(),
        _org(),
        _fk('object_id', 'crm_objects', 'CASCADE', nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('config', sa.JSON(), nullable=True),
        sa.Column('is_required', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_unique', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_system', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('default_value', sa.JSON(), nullable=True),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        _created(),
        _updated(),
        sa.UniqueConstraint('object_id', 'name', name='uq_field_object_name'),
    )
    op.create_table(
        'records',
        _id(),
        _org(),
        _fk('object_id', 'crm_objects', 'CASCADE', nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('stage', sa.String(100), nullable=True),
        sa.Column('score', sa.Float(), nullable=True),
        _fk('owner_id', 'users', 'SET NULL'),
        _fk('created_by', 'users', 'SET NULL'),
        _fk('updated_by', 'users', 'SET NULL'),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
        _updated(),
    )
    op.create_index('ix_records_org_object', 'records', ['organization_id', 'object_id'])
    op.create_index('ix_records_stage', 'records', ['stage'])
    op.create_table(
        'relations',
        _id(),
        _org(),
        _fk('from_record_id', 'records', 'CASCADE', nullable=False),
        _fk('to_record_id', 'records', 'CASCADE', nullable=False),
        sa.Column('relation_type', sa.String(50), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        _created(),
        sa.UniqueConstraint('from_record_id', 'to_record_id', 'relation_type', name='uq_relation_from_to_type'),
    )
    op.create_table(
        'activities',
        _id(),
        _org(),
        _fk('record_id', 'records', 'CASCADE'),
        _fk('user_id', 'users', 'SET NULL'),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        _created(),
    )
    op.create_index('ix_activities_record_created', 'activities', ['record_id', 'created_at'])
    op.create_table(
        'lead_scores',
        _id(),
        _org(),
        sa.Column('record_id', UUID(as_uuid=True), sa.ForeignKey('records.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('total_score', sa.Float(), nullable=False),
        sa.Column('grade', sa.String(1), nullable=False),
        sa.Column('factors', sa.JSON(), nullable=True),
        sa.Column('calculated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_lead_scores_org_grade', 'lead_scores', ['organization_id', 'grade'])

    # --- 파이프라인/뷰/워크플로우 (Pipelines, views, workflows) ---
    op.create_table(
        'pipelines',
        _id(),
        _org(),
        _fk('object_id', 'crm_objects', 'CASCADE', nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('stages', sa.JSON(), nullable=True),
        sa.Column('is_default', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
        _updated(),
    )
    op.create_table(
        'views',
        _id(),
        _org(),
        _fk('object_id', 'crm_objects', 'CASCADE', nullable=False),
        _fk('owner_id', 'users', 'CASCADE'),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('type', sa.String(20), server_default='TABLE', nullable=False),
        sa.Column('config', sa.JSON(), nullable=True),
        sa.Column('is_default', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_shared', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        _created(),
        _updated(),
    )
    op.create_table(
        'workflows',
        _id(),
        _org(),
        _fk('object_id', 'crm_objects', 'CASCADE', nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('trigger', sa.String(30), nullable=False),
        sa.Column('trigger_config', sa.JSON(), nullable=True),
        sa.Column('conditions', sa.JSON(), nullable=True),
        sa.Column('actions', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _fk('created_by', 'users', 'SET NULL'),
        sa.Column('run_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=True),
        _created(),
        _updated(),
    )
    op.create_index('ix_workflows_object_trigger', 'workflows', ['object_id', 'trigger'])
    op.create_table(
        'workflow_executions',
        _id(),
        _org(),
        _fk('workflow_id', 'workflows', 'CASCADE', nullable=False),
        sa.Column('record_id', UUID(as_uuid=True), nullable=True),
        sa.Column('trigger', sa.String(30), nullable=False),
        sa.Column('status', sa.String(20), server_default='RUNNING', nullable=False),
        sa.Column('result', sa.JSON(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    )

    # --- 프로젝트/업무/시간 (Projects, tasks, time) ---
    op.create_table(
        'projects',
        _id(),
        _org(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), server_default='PLANNING', nullable=False),
        sa.Column('priority', sa.String(20), server_default='MEDIUM', nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        _fk('record_id', 'records', 'SET NULL'),
        sa.Column('team_ids', sa.JSON(), nullable=True),
        sa.Column('budget', sa.Float(), nullable=True),
        sa.Column('time_estimate', sa.Integer(), nullable=True),
        sa.Column('color', sa.String(7), nullable=True),
        sa.Column('emoji', sa.String(10), nullable=True),
        sa.Column('progress', sa.Integer(), server_default='0', nullable=False),
        sa.Column('owner_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
        _updated(),
    )
    op.create_table(
        'project_members',
        _id(),
        _fk('project_id', 'projects', 'CASCADE', nullable=False),
        _fk('user_id', 'users', 'CASCADE', nullable=False),
        sa.Column('role', sa.String(20), server_default='MEMBER', nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('project_id', 'user_id', name='uq_project_member'),
    )
    op.create_table(
        'tasks',
        _id(),
        _org(),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), server_default='TODO', nullable=False),
        sa.Column('priority', sa.String(20), server_default='MEDIUM', nullable=False),
        _fk('project_id', 'projects', 'CASCADE'),
        _fk('record_id', 'records', 'SET NULL'),
        _fk('parent_id', 'tasks', 'CASCADE'),
        _fk('assignee_id', 'users', 'SET NULL'),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_estimate', sa.Integer(), nullable=True),
        sa.Column('time_spent', sa.Integer(), server_default='0', nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
        _updated(),
    )
    op.create_index('ix_tasks_project_status_position', 'tasks', ['project_id', 'status', 'position'])
    op.create_table(
        'checklist_items',
        _id(),
        _fk('task_id', 'tasks', 'CASCADE', nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('is_completed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        _created(),
    )
    op.create_table(
        'task_dependencies',
        _id(),
        _fk('task_id', 'tasks', 'CASCADE', nullable=False),
        _fk('depends_on_id', 'tasks', 'CASCADE', nullable=False),
        sa.Column('type', sa.String(20), server_default='BLOCKS', nullable=False),
        _created(),
        sa.UniqueConstraint('task_id', 'depends_on_id', name='uq_task_dependency'),
    )
    op.create_table(
        'time_entries',
        _id(),
        _org(),
        _fk('user_id', 'users', 'CASCADE', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _fk('task_id', 'tasks', 'SET NULL'),
        _fk('project_id', 'projects', 'SET NULL'),
        _fk('record_id', 'records', 'SET NULL'),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_billable', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('hourly_rate', sa.Float(), nullable=True),
        _created(),
        _updated(),
    )

    # --- 커뮤니케이션/파일 (Communication and files) ---
    op.create_table(
        'notifications',
        _id(),
        _org(),
        _fk('user_id', 'users', 'CASCADE', nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        _created(),
    )
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'is_read'])
    op.create_table(
        'comments',
        _id(),
        _org(),
        _fk('author_id', 'users', 'CASCADE', nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        _fk('record_id', 'records', 'CASCADE'),
        _fk('task_id', 'tasks', 'CASCADE'),
        _fk('project_id', 'projects', 'CASCADE'),
        sa.Column('mentions', sa.JSON(), nullable=True),
        sa.Column('is_edited', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
        _updated(),
    )
    op.create_table(
        'email_templates',
        _id(),
        _org(),
        _fk('owner_id', 'users', 'CASCADE', nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('is_shared', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _created(),
        _updated(),
    )
    op.create_table(
        'email_logs',
        _id(),
        _org(),
        _fk('sender_id', 'users', 'SET NULL'),
        _fk('template_id', 'email_templates', 'SET NULL'),
        _fk('record_id', 'records', 'SET NULL'),
        sa.Column('to', sa.JSON(), nullable=True),
        sa.Column('cc', sa.JSON(), nullable=True),
        sa.Column('bcc', sa.JSON(), nullable=True),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), server_default='PENDING', nullable=False),
        sa.Column('message_id', sa.String(255), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        _created(),
    )
    op.create_table(
        'files',
        _id(),
        _org(),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('original_name', sa.String(500), nullable=False),
        sa.Column('mime_type', sa.String(255), server_default='application/octet-stream', nullable=False),
        sa.Column('size', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('url', sa.String(1000), nullable=False),
        _fk('record_id', 'records', 'CASCADE'),
        _fk('task_id', 'tasks', 'CASCADE'),
        _fk('project_id', 'projects', 'CASCADE'),
        _fk('uploaded_by', 'users', 'SET NULL'),
        _created(),
    )


def downgrade() -> None:
    for table in (
        'files', 'email_logs', 'email_templates', 'comments', 'notifications',
        'time_entries', 'task_dependencies', 'checklist_items', 'tasks',
        'project_members', 'projects', 'workflow_executions', 'workflows',
        'views', 'pipelines', 'lead_scores', 'activities', 'relations', 'records', 'fields',
        'crm_objects', 'verification_codes', 'users', 'roles', 'organizations',
    ):
        op.drop_table(table)
