"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def base_columns():
    """Columns every table inherits from app.models.base.Base"""
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def base_indexes(table):
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'])
    op.create_index(op.f(f'ix_{table}_created_at'), table, ['created_at'])
    op.create_index(op.f(f'ix_{table}_is_deleted'), table, ['is_deleted'])


def upgrade() -> None:
    op.create_table('orgs',
        *base_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='UTC'),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('orgs')
    op.create_index(op.f('ix_orgs_slug'), 'orgs', ['slug'], unique=True)

    op.create_table('users',
        *base_columns(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('ssn', sa.String(length=30), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('gender', sa.String(length=10), nullable=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('users')
    op.create_index(op.f('ix_users_org_id'), 'users', ['org_id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'])

    op.create_table('staff',
        *base_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('education_level', sa.String(length=100), nullable=True),
        sa.Column('union_name', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('staff')
    op.create_index(op.f('ix_staff_user_id'), 'staff', ['user_id'], unique=True)
    op.create_index(op.f('ix_staff_org_id'), 'staff', ['org_id'])

    op.create_table('classes',
        *base_columns(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('classes')
    op.create_index(op.f('ix_classes_org_id'), 'classes', ['org_id'])
    op.create_index(op.f('ix_classes_name'), 'classes', ['name'])

    op.create_table('class_memberships',
        *base_columns(),
        sa.Column('class_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('membership_role', sa.String(length=20), nullable=False, server_default='teacher'),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('class_id', 'user_id', name='uq_class_membership')
    )
    base_indexes('class_memberships')
    op.create_index(op.f('ix_class_memberships_class_id'), 'class_memberships', ['class_id'])
    op.create_index(op.f('ix_class_memberships_user_id'), 'class_memberships', ['user_id'])

    op.create_table('students',
        *base_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('class_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('student_language', sa.String(length=20), nullable=False, server_default='english'),
        sa.Column('barngildi', sa.Numeric(2, 1), nullable=False, server_default='0.5'),
        sa.Column('medical_notes', sa.Text(), nullable=True),
        sa.Column('allergies', sa.Text(), nullable=True),
        sa.Column('emergency_contact', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('students')
    op.create_index(op.f('ix_students_user_id'), 'students', ['user_id'])
    op.create_index(op.f('ix_students_org_id'), 'students', ['org_id'])
    op.create_index(op.f('ix_students_class_id'), 'students', ['class_id'])

    op.create_table('guardian_students',
        *base_columns(),
        sa.Column('guardian_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('relation', sa.String(length=20), nullable=False, server_default='parent'),
        sa.ForeignKeyConstraint(['guardian_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('guardian_id', 'student_id', name='uq_guardian_student')
    )
    base_indexes('guardian_students')
    op.create_index(op.f('ix_guardian_students_guardian_id'), 'guardian_students', ['guardian_id'])
    op.create_index(op.f('ix_guardian_students_student_id'), 'guardian_students', ['student_id'])
    op.create_index(op.f('ix_guardian_students_org_id'), 'guardian_students', ['org_id'])

    op.create_table('announcements',
        *base_columns(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('class_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('author_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('announcements')
    op.create_index(op.f('ix_announcements_org_id'), 'announcements', ['org_id'])
    op.create_index(op.f('ix_announcements_class_id'), 'announcements', ['class_id'])
    op.create_index(op.f('ix_announcements_author_id'), 'announcements', ['author_id'])

    op.create_table('events',
        *base_columns(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('class_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('location', sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('events')
    op.create_index(op.f('ix_events_org_id'), 'events', ['org_id'])
    op.create_index(op.f('ix_events_class_id'), 'events', ['class_id'])
    op.create_index('idx_event_org_start', 'events', ['org_id', 'start_at'])

    op.create_table('message_threads',
        *base_columns(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('thread_type', sa.String(length=20), nullable=False, server_default='dm'),
        sa.Column('subject', sa.String(length=500), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('message_threads')
    op.create_index(op.f('ix_message_threads_org_id'), 'message_threads', ['org_id'])
    op.create_index(op.f('ix_message_threads_created_by'), 'message_threads', ['created_by'])

    op.create_table('message_participants',
        *base_columns(),
        sa.Column('message_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=True),
        sa.Column('unread', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.ForeignKeyConstraint(['message_id'], ['message_threads.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('message_id', 'user_id', name='uq_message_participant')
    )
    base_indexes('message_participants')
    op.create_index(op.f('ix_message_participants_message_id'), 'message_participants', ['message_id'])
    op.create_index(op.f('ix_message_participants_user_id'), 'message_participants', ['user_id'])
    op.create_index('idx_participant_user_unread', 'message_participants', ['user_id', 'unread'])

    op.create_table('message_items',
        *base_columns(),
        sa.Column('message_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('author_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('edit_history', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('attachments', sa.JSON(), nullable=False, server_default='[]'),
        sa.ForeignKeyConstraint(['message_id'], ['message_threads.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    base_indexes('message_items')
    op.create_index(op.f('ix_message_items_message_id'), 'message_items', ['message_id'])
    op.create_index(op.f('ix_message_items_author_id'), 'message_items', ['author_id'])
    op.create_index('idx_message_item_thread_time', 'message_items', ['message_id', 'created_at'])


def downgrade() -> None:
    for table in (
        'message_items', 'message_participants', 'message_threads', 'events', 'announcements',
        'guardian_students', 'students', 'class_memberships', 'classes', 'staff', 'users', 'orgs',
    ):
        op.drop_table(table)
