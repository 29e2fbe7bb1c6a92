"""Initial schema: tenants, tenant_cnpjs, users, lancamentos.

Revisão:
  - `tenants` com CNPJ principal único
  - `tenant_cnpjs` com CNPJ único (CNPJs adicionais, ex.: "Estadual")
  - `users` com email único e check role x tenant
    (roles de plataforma sem tenant, roles de tenant com tenant)
  - `lancamentos` com índice (cnpj, tenant_id) para a sincronização de órfãos
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision: str = "5e1a7c2b9d40"
down_revision = None
branch_labels = None
depends_on = None


PLATFORM_ROLES = ("SUPER_ADMIN", "SUPORTE_ADMIN", "FINANCEIRO_ADMIN")
TENANT_ROLES = ("SECRETARIO", "FINANCEIRO", "VISUALIZADOR")


def _in(values: tuple[str, ...]) -> str:
    return ", ".join(f"'{value}'" for value in sorted(values))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("nome", sa.String(length=255), nullable=False),
        sa.Column("cnpj", sa.String(length=18), nullable=False),
        sa.Column("email_contato", sa.String(length=255), nullable=False),
        sa.Column("cidade", sa.String(length=100), nullable=True),
        sa.Column("estado", sa.String(length=2), nullable=True),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column("created_by", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("updated_by", sa.Uuid(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_tenants"),
    )
    op.create_index("ix_tenants_cnpj", "tenants", ["cnpj"], unique=True)
    op.create_index("ix_tenants_ativo", "tenants", ["ativo"], unique=False)

    op.create_table(
        "tenant_cnpjs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("cnpj", sa.String(length=18), nullable=False),
        sa.Column("descricao", sa.String(length=255), nullable=True),
        sa.Column("tenant_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            ondelete="CASCADE",
            name="fk_tenant_cnpjs_tenant_id",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tenant_cnpjs"),
        sa.UniqueConstraint("cnpj", name="uq_tenant_cnpjs_cnpj"),
    )
    op.create_index("ix_tenant_cnpjs_tenant_id", "tenant_cnpjs", ["tenant_id"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("nome", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column("updated_by", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            ondelete="CASCADE",
            name="fk_users_tenant_id",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.CheckConstraint(
            f"(role IN ({_in(PLATFORM_ROLES)}) AND tenant_id IS NULL) OR "
            f"(role IN ({_in(TENANT_ROLES)}) AND tenant_id IS NOT NULL)",
            name="ck_users_role_tenant",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"], unique=False)
    op.create_index("ix_users_ativo", "users", ["ativo"], unique=False)

    op.create_table(
        "lancamentos",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("cnpj", sa.String(length=18), nullable=False),
        sa.Column("nu_processo", sa.String(length=50), nullable=True),
        sa.Column("nu_portaria", sa.String(length=50), nullable=True),
        sa.Column("dt_portaria", sa.Date(), nullable=True),
        sa.Column("ano", sa.Integer(), nullable=False),
        sa.Column("mes", sa.Integer(), nullable=False),
        sa.Column("nu_competencia", sa.String(length=20), nullable=True),
        sa.Column("dia_pagamento", sa.Integer(), nullable=True),
        sa.Column("tp_repasse", sa.String(length=100), nullable=False),
        sa.Column("nu_ob", sa.String(length=50), nullable=True),
        sa.Column("co_tipo_recurso", sa.String(length=20), nullable=True),
        sa.Column("tp_recurso_prop", sa.String(length=100), nullable=True),
        sa.Column("recurso_covid_ou_normal", sa.String(length=20), nullable=True),
        sa.Column("uf", sa.String(length=2), nullable=False),
        sa.Column("co_municipio_ibge", sa.String(length=10), nullable=False),
        sa.Column("municipio", sa.String(length=150), nullable=False),
        sa.Column("entidade", sa.String(length=255), nullable=True),
        sa.Column("bloco", sa.String(length=100), nullable=True),
        sa.Column("componente", sa.String(length=150), nullable=True),
        sa.Column("programa", sa.String(length=150), nullable=True),
        sa.Column("nu_proposta", sa.String(length=50), nullable=True),
        sa.Column("banco", sa.String(length=100), nullable=True),
        sa.Column("agencia", sa.String(length=20), nullable=True),
        sa.Column("conta", sa.String(length=30), nullable=True),
        sa.Column("valor_bruto", sa.Numeric(15, 2), nullable=False),
        sa.Column("desconto", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("valor_liquido", sa.Numeric(15, 2), nullable=False),
        sa.Column("dt_saldo_conta", sa.Date(), nullable=True),
        sa.Column("vl_saldo_conta", sa.Numeric(15, 2), nullable=True),
        sa.Column("marcador_emenda_covid", sa.String(length=100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column("created_by", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column("updated_by", sa.Uuid(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_lancamentos_tenant_id",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_lancamentos"),
    )
    op.create_index("ix_lancamentos_tenant_id", "lancamentos", ["tenant_id"], unique=False)
    op.create_index("ix_lancamentos_cnpj", "lancamentos", ["cnpj"], unique=False)
    op.create_index(
        "ix_lancamentos_cnpj_tenant",
        "lancamentos",
        ["cnpj", "tenant_id"],
        unique=False,
    )
    op.create_index("ix_lancamentos_periodo", "lancamentos", ["ano", "mes"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_lancamentos_periodo", table_name="lancamentos")
    op.drop_index("ix_lancamentos_cnpj_tenant", table_name="lancamentos")
    op.drop_index("ix_lancamentos_cnpj", table_name="lancamentos")
    op.drop_index("ix_lancamentos_tenant_id", table_name="lancamentos")
    op.drop_table("lancamentos")

    op.drop_index("ix_users_ativo", table_name="users")
    op.drop_index("ix_users_tenant_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_tenant_cnpjs_tenant_id", table_name="tenant_cnpjs")
    op.drop_table("tenant_cnpjs")

    op.drop_index("ix_tenants_ativo", table_name="tenants")
    op.drop_index("ix_tenants_cnpj", table_name="tenants")
    op.drop_table("tenants")
