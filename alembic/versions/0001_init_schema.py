"""Initial schema"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    op.execute("CREATE TYPE project_status AS ENUM ('active','archived');")
    op.execute("CREATE TYPE project_mode AS ENUM ('agency','commerce','playground');")
    op.execute(
        "CREATE TYPE artifact_type AS ENUM ('website_code','identity','market_research','business_plan','leads',"
        "'outreach','ads','first_week_plan','long_term_plan','lead_website','crm','contracts','client_work',"
        "'administration','crawled_site','templates');"
    )
    op.execute("CREATE TYPE message_role AS ENUM ('user','assistant','system');")
    op.execute(
        "CREATE TYPE lead_status AS ENUM ('new','contacted','responded','converted','rejected','closed','lost');"
    )
    op.execute("CREATE TYPE lead_priority AS ENUM ('low','medium','high');")
    op.execute("CREATE TYPE client_status AS ENUM ('prospect','active','paused','churned');")
    op.execute(
        "CREATE TYPE client_activity_type AS ENUM ('note','call','email','meeting','payment','status_change','task');"
    )
    op.execute(
        "CREATE TYPE credit_transaction_type AS ENUM ('free_tier','purchase','deduction','refund','bonus');"
    )
    op.execute("CREATE TYPE publish_source_type AS ENUM ('project','lead');")
    op.execute("CREATE TYPE publish_status AS ENUM ('deploying','published','failed');")
    op.execute("CREATE TYPE publish_access_level AS ENUM ('public','password','private');")

    uuid = postgresql.UUID(as_uuid=True)
    jsonb = postgresql.JSONB(astext_type=sa.Text())

    project_status_enum = postgresql.ENUM(name="project_status", create_type=False)
    project_mode_enum = postgresql.ENUM(name="project_mode", create_type=False)
    artifact_type_enum = postgresql.ENUM(name="artifact_type", create_type=False)
    message_role_enum = postgresql.ENUM(name="message_role", create_type=False)
    lead_status_enum = postgresql.ENUM(name="lead_status", create_type=False)
    lead_priority_enum = postgresql.ENUM(name="lead_priority", create_type=False)
    client_status_enum = postgresql.ENUM(name="client_status", create_type=False)
    client_activity_type_enum = postgresql.ENUM(name="client_activity_type", create_type=False)
    credit_transaction_type_enum = postgresql.ENUM(name="credit_transaction_type", create_type=False)
    publish_source_type_enum = postgresql.ENUM(name="publish_source_type", create_type=False)
    publish_status_enum = postgresql.ENUM(name="publish_status", create_type=False)
    publish_access_level_enum = postgresql.ENUM(name="publish_access_level", create_type=False)

    def timestamps() -> list[sa.Column]:
        return [
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        ]

    op.create_table(
        "projects",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", project_status_enum, nullable=False, server_default=sa.text("'active'")),
        sa.Column("mode", project_mode_enum, nullable=False, server_default=sa.text("'playground'")),
        sa.Column("mode_data", jsonb, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("model_id", sa.Text(), nullable=True),
        *timestamps(),
    )
    op.create_index("idx_projects_user_created", "projects", ["user_id", "created_at"])

    op.create_table(
        "artifacts",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("project_id", uuid, sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", artifact_type_enum, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("data", jsonb, nullable=False),
        sa.Column("previous_data", jsonb, nullable=True),
        *timestamps(),
        sa.UniqueConstraint("project_id", "type", name="uq_artifacts_project_type"),
    )
    op.create_index(
        "idx_artifacts_gin_data", "artifacts", ["data"], postgresql_using="gin"
    )

    op.create_table(
        "messages",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("project_id", uuid, sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", message_role_enum, nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("metadata", jsonb, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("idx_messages_project_created", "messages", ["project_id", "created_at"])

    op.create_table(
        "leads",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("project_id", uuid, sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_name", sa.Text(), nullable=False),
        sa.Column("industry", sa.Text(), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.Text(), nullable=True),
        sa.Column("state", sa.Text(), nullable=True),
        sa.Column("contact_name", sa.Text(), nullable=True),
        sa.Column("contact_title", sa.Text(), nullable=True),
        sa.Column("contact_email", sa.Text(), nullable=True),
        sa.Column("contact_linkedin", sa.Text(), nullable=True),
        sa.Column("place_id", sa.Text(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("review_count", sa.Integer(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False, server_default=sa.text("50")),
        sa.Column("score_breakdown", jsonb, nullable=True),
        sa.Column("icp_score", sa.Float(), nullable=False, server_default=sa.text("5")),
        sa.Column("icp_match_reasons", jsonb, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("pain_points", jsonb, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("buying_signals", jsonb, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("website_analysis", jsonb, nullable=True),
        sa.Column("status", lead_status_enum, nullable=False, server_default=sa.text("'new'")),
        sa.Column("priority", lead_priority_enum, nullable=False, server_default=sa.text("'medium'")),
        sa.Column("source", sa.Text(), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("preview_token", sa.Text(), nullable=True),
        sa.Column("website_status", sa.Text(), nullable=True),
        sa.Column("stripe_payment_link_id", sa.Text(), nullable=True),
        sa.Column("stripe_payment_link_url", sa.Text(), nullable=True),
        sa.Column("stripe_payment_status", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("deal_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("deal_currency", sa.Text(), nullable=True),
        *timestamps(),
        sa.UniqueConstraint("project_id", "place_id", name="uq_leads_project_place"),
        sa.CheckConstraint("score BETWEEN 0 AND 100", name="ck_leads_score_range"),
    )
    op.create_index("idx_leads_project_score", "leads", ["project_id", "score"])
    op.create_index("idx_leads_preview_token", "leads", ["preview_token"])

    op.create_table(
        "clients",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("project_id", uuid, sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_name", sa.Text(), nullable=False),
        sa.Column("industry", sa.Text(), nullable=True),
        sa.Column("primary_contact_name", sa.Text(), nullable=True),
        sa.Column("primary_contact_email", sa.Text(), nullable=True),
        sa.Column("primary_contact_phone", sa.Text(), nullable=True),
        sa.Column("primary_contact_title", sa.Text(), nullable=True),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("status", client_status_enum, nullable=False, server_default=sa.text("'prospect'")),
        sa.Column("tags", jsonb, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("source", sa.Text(), nullable=False, server_default=sa.text("'manual_entry'")),
        sa.Column("payment_terms", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("currency", sa.Text(), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("total_revenue", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("outstanding_balance", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("lifetime_value", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        *timestamps(),
    )
    op.create_index("idx_clients_project_created", "clients", ["project_id", "created_at"])

    op.create_table(
        "client_activities",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("client_id", uuid, sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", client_activity_type_enum, nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("metadata", jsonb, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("user_name", sa.Text(), nullable=False, server_default=sa.text("'system'")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index(
        "idx_client_activities_client_created", "client_activities", ["client_id", "created_at"]
    )

    op.create_table(
        "published_websites",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("project_id", uuid, sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("source_type", publish_source_type_enum, nullable=False),
        sa.Column("source_id", sa.Text(), nullable=True),
        sa.Column("subdomain", sa.Text(), nullable=False),
        sa.Column("base_domain", sa.Text(), nullable=False),
        sa.Column("custom_domain", sa.Text(), nullable=True),
        sa.Column("vercel_project_id", sa.Text(), nullable=True),
        sa.Column("vercel_deployment_id", sa.Text(), nullable=True),
        sa.Column("deployment_url", sa.Text(), nullable=True),
        sa.Column("status", publish_status_enum, nullable=False, server_default=sa.text("'deploying'")),
        sa.Column("access_level", publish_access_level_enum, nullable=False, server_default=sa.text("'public'")),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.UniqueConstraint("subdomain", name="uq_published_websites_subdomain"),
    )
    op.create_index("idx_published_websites_project", "published_websites", ["project_id"])

    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.Text(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("credits", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("lifetime_credits_purchased", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *timestamps(),
        sa.CheckConstraint("credits >= 0", name="ck_user_profiles_credits_non_negative"),
    )

    op.create_table(
        "credit_transactions",
        sa.Column("id", uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "user_id", sa.Text(), sa.ForeignKey("user_profiles.user_id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("type", credit_transaction_type_enum, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("metadata", jsonb, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index(
        "idx_credit_transactions_user_created", "credit_transactions", ["user_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("idx_credit_transactions_user_created", table_name="credit_transactions")
    op.drop_table("credit_transactions")
    op.drop_table("user_profiles")

    op.drop_index("idx_published_websites_project", table_name="published_websites")
    op.drop_table("published_websites")

    op.drop_index("idx_client_activities_client_created", table_name="client_activities")
    op.drop_table("client_activities")
    op.drop_index("idx_clients_project_created", table_name="clients")
    op.drop_table("clients")

    op.drop_index("idx_leads_preview_token", table_name="leads")
    op.drop_index("idx_leads_project_score", table_name="leads")
    op.drop_table("leads")

    op.drop_index("idx_messages_project_created", table_name="messages")
    op.drop_table("messages")

    op.drop_index("idx_artifacts_gin_data", table_name="artifacts")
    op.drop_table("artifacts")

    op.drop_index("idx_projects_user_created", table_name="projects")
    op.drop_table("projects")

    op.execute("DROP TYPE publish_access_level;")
    op.execute("DROP TYPE publish_status;")
    op.execute("DROP TYPE publish_source_type;")
    op.execute("DROP TYPE credit_transaction_type;")
    op.execute("DROP TYPE client_activity_type;")
    op.execute("DROP TYPE client_status;")
    op.execute("DROP TYPE lead_priority;")
    op.execute("DROP TYPE lead_status;")
    op.execute("DROP TYPE message_role;")
    op.execute("DROP TYPE artifact_type;")
    op.execute("DROP TYPE project_mode;")
    op.execute("DROP TYPE project_status;")
