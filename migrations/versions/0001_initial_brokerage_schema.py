"""Initial brokerage schema: users, developers, projects, enquiries, leads

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


LEAD_STATUSES = ('HOT', 'WARM', 'COLD')

SALES_STAGES = (
    'New Inquiry',
    'Contacted',
    'Requirements Captured',
    'Qualified Lead',
    'Property Shared',
    'Shortlisted',
    'Site Visit Scheduled',
    'Site Visit Done',
    'Negotiation',
    'Offer Made',
    'Offer Accepted',
    'Booking / Reservation',
    'SPA Issued',
    'SPA Signed',
    'Mortgage Approved',
    'Oqood Registered / Title Deed Issued',
    'Deal Closed – Won',
    'Deal Lost',
    'Post-Sale Follow-up',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def _client_profile():
    return [
        sa.Column('job_title', sa.String(255), nullable=True),
        sa.Column('employer', sa.String(255), nullable=True),
        sa.Column('property_interests', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('client_folder_link', sa.String(500), nullable=True),
        sa.Column('nationality', sa.String(100), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('home_address', sa.Text(), nullable=True),
    ]


def _status_column():
    return sa.Column(
        'status',
        sa.Enum(*LEAD_STATUSES, name='lead_status', native_enum=False, length=10),
        nullable=False,
        server_default='HOT',
    )


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='USER'),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('profile_image', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'developers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('logo', sa.String(500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('project_count', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_developers_name', 'developers', ['name'])
    op.create_index('ix_developers_project_count', 'developers', ['project_count'])
    op.create_index('ix_developers_created_at', 'developers', ['created_at'])

    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('type', sa.JSON(), nullable=True),
        sa.Column('unit_types', sa.JSON(), nullable=True),
        sa.Column('min_price', sa.Numeric(15, 2), nullable=True),
        sa.Column('max_price', sa.Numeric(15, 2), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('amenities', sa.JSON(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('location_lat', sa.Float(), nullable=True),
        sa.Column('location_lng', sa.Float(), nullable=True),
        sa.Column(
            'developer_id',
            sa.Uuid(),
            sa.ForeignKey('developers.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        *_timestamps(),
    )
    op.create_index('ix_projects_city', 'projects', ['city'])
    op.create_index('ix_projects_category', 'projects', ['category'])
    op.create_index('ix_projects_developer_id', 'projects', ['developer_id'])
    op.create_index('ix_projects_status', 'projects', ['status'])
    op.create_index('ix_projects_created_at', 'projects', ['created_at'])

    op.create_table(
        'general_enquiries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('subject', sa.String(500), nullable=True),
        sa.Column('event', sa.String(255), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        _status_column(),
        *_client_profile(),
        *_timestamps(),
    )
    op.create_index('ix_general_enquiries_email', 'general_enquiries', ['email'])
    op.create_index('ix_general_enquiries_status', 'general_enquiries', ['status'])
    op.create_index('ix_general_enquiries_created_at', 'general_enquiries', ['created_at'])

    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('property_id', sa.String(100), nullable=True),
        sa.Column('price', sa.Numeric(15, 2), nullable=True),
        sa.Column('project_name', sa.String(500), nullable=True),
        sa.Column('type', sa.String(100), nullable=True),
        sa.Column('intent', sa.String(100), nullable=True),
        sa.Column('event', sa.String(255), nullable=True),
        _status_column(),
        sa.Column(
            'sales_stage',
            sa.Enum(*SALES_STAGES, name='sales_stage', native_enum=False, length=50),
            nullable=False,
            server_default='New Inquiry',
        ),
        *_client_profile(),
        *_timestamps(),
    )
    op.create_index('ix_leads_project_name', 'leads', ['project_name'])
    op.create_index('ix_leads_status', 'leads', ['status'])
    op.create_index('ix_leads_created_at', 'leads', ['created_at'])


def downgrade() -> None:
    op.drop_table('leads')
    op.drop_table('general_enquiries')
    op.drop_table('projects')
    op.drop_table('developers')
    op.drop_table('users')
