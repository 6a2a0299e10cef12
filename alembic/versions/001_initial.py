"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2024-06-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


BOOLEAN_PASSTHROUGH = (
    'hasimage', 'isundisclosedaddress', 'iszillowowned', 'issaved', 'isuserclaimingowner',
    'isuserconfirmedclaim', 'shouldshowzestimateasprice', 'has3dmodel', 'hasvideo',
    'ispropertyresultcdp', 'list',
)


def upgrade() -> None:
    # Create runs table
    op.create_table(
        'runs',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_runs_started_at'), 'runs', ['started_at'], unique=False)

    # Create listings table
    op.create_table(
        'listings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('zpid', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='just_listed'),
        sa.Column('lastrunid', sa.String(length=64), nullable=True),
        sa.Column('lastseenat', sa.DateTime(timezone=True), nullable=True),
        sa.Column('lastcity', sa.Text(), nullable=True),
        sa.Column('lastpage', sa.Integer(), nullable=True),
        sa.Column('isjustlisted', sa.Boolean(), nullable=True),
        sa.Column('city', sa.Text(), nullable=True),
        sa.Column('region', sa.Text(), nullable=True),
        sa.Column('rawhomestatuscd', sa.Text(), nullable=True),
        sa.Column('marketingstatussimplifiedcd', sa.Text(), nullable=True),
        sa.Column('imgsrc', sa.Text(), nullable=True),
        sa.Column('detailurl', sa.Text(), nullable=True),
        sa.Column('statustype', sa.Text(), nullable=True),
        sa.Column('statustext', sa.Text(), nullable=True),
        sa.Column('countrycurrency', sa.Text(), nullable=True),
        sa.Column('price', sa.Text(), nullable=True),
        sa.Column('unformattedprice', sa.Float(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('addressstreet', sa.Text(), nullable=True),
        sa.Column('addresszipcode', sa.Text(), nullable=True),
        sa.Column('addresscity', sa.Text(), nullable=True),
        sa.Column('addressstate', sa.Text(), nullable=True),
        sa.Column('beds', sa.Integer(), nullable=True),
        sa.Column('baths', sa.Integer(), nullable=True),
        sa.Column('area', sa.Integer(), nullable=True),
        sa.Column('latlong', sa.JSON(), nullable=True),
        sa.Column('hdpdata', sa.JSON(), nullable=True),
        sa.Column('carouselphotos', sa.JSON(), nullable=True),
        sa.Column('carousel_photos_composable', sa.JSON(), nullable=True),
        *[sa.Column(name, sa.Boolean(), nullable=True) for name in BOOLEAN_PASSTHROUGH],
        sa.Column('flexfieldtext', sa.Text(), nullable=True),
        sa.Column('contenttype', sa.Text(), nullable=True),
        sa.Column('pgapt', sa.Text(), nullable=True),
        sa.Column('sgapt', sa.Text(), nullable=True),
        sa.Column('info1string', sa.Text(), nullable=True),
        sa.Column('brokername', sa.Text(), nullable=True),
        sa.Column('openhousedescription', sa.Text(), nullable=True),
        sa.Column('buildername', sa.Text(), nullable=True),
        sa.Column('lotareastring', sa.Text(), nullable=True),
        sa.Column('providerlistingid', sa.Text(), nullable=True),
        sa.Column('streetviewmetadataurl', sa.Text(), nullable=True),
        sa.Column('streetviewurl', sa.Text(), nullable=True),
        sa.Column('openhousestartdate', sa.Text(), nullable=True),
        sa.Column('openhouseenddate', sa.Text(), nullable=True),
        sa.Column('availability_date', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_listings_id'), 'listings', ['id'], unique=False)
    op.create_index(op.f('ix_listings_zpid'), 'listings', ['zpid'], unique=True)
    op.create_index(op.f('ix_listings_status'), 'listings', ['status'], unique=False)
    op.create_index(op.f('ix_listings_lastrunid'), 'listings', ['lastrunid'], unique=False)
    op.create_index(op.f('ix_listings_lastseenat'), 'listings', ['lastseenat'], unique=False)
    op.create_index(op.f('ix_listings_addresscity'), 'listings', ['addresscity'], unique=False)
    op.create_index('ix_listings_unformattedprice', 'listings', ['unformattedprice'], unique=False)

    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('credits_remaining', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unlimited', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # Create listing_reveals table
    op.create_table(
        'listing_reveals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('listing_id', sa.Integer(), nullable=False),
        sa.Column('credit_cost', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['listing_id'], ['listings.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'listing_id', name='uq_listing_reveals_user_listing')
    )
    op.create_index(op.f('ix_listing_reveals_id'), 'listing_reveals', ['id'], unique=False)
    op.create_index(op.f('ix_listing_reveals_user_id'), 'listing_reveals', ['user_id'], unique=False)
    op.create_index(op.f('ix_listing_reveals_listing_id'), 'listing_reveals', ['listing_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_listing_reveals_listing_id'), table_name='listing_reveals')
    op.drop_index(op.f('ix_listing_reveals_user_id'), table_name='listing_reveals')
    op.drop_index(op.f('ix_listing_reveals_id'), table_name='listing_reveals')
    op.drop_table('listing_reveals')
    op.drop_table('profiles')
    op.drop_index('ix_listings_unformattedprice', table_name='listings')
    op.drop_index(op.f('ix_listings_addresscity'), table_name='listings')
    op.drop_index(op.f('ix_listings_lastseenat'), table_name='listings')
    op.drop_index(op.f('ix_listings_lastrunid'), table_name='listings')
    op.drop_index(op.f('ix_listings_status'), table_name='listings')
    op.drop_index(op.f('ix_listings_zpid'), table_name='listings')
    op.drop_index(op.f('ix_listings_id'), table_name='listings')
    op.drop_table('listings')
    op.drop_index(op.f('ix_runs_started_at'), table_name='runs')
    op.drop_table('runs')
