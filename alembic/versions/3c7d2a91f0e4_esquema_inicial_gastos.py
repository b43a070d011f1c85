"""esquema_inicial_gastos

Crea las tablas de órdenes de publicidad, formularios, comprobantes y los
contextos por área (implementacion, tecnica, programacion, experience,
productora).

Revision ID: 3c7d2a91f0e4
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c7d2a91f0e4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_CONTEXTOS = [
    "contexto_implementacion",
    "contexto_tecnica",
    "contexto_programacion",
    "contexto_experience",
    "contexto_productora",
]


def _columnas_contexto() -> list[sa.Column]:
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            'comprobante_id',
            sa.Integer(),
            sa.ForeignKey('comprobante.id', ondelete='CASCADE'),
            nullable=False,
            unique=True,
        ),
        sa.Column('formulario_id', sa.Integer(), sa.ForeignKey('formulario.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    ]


def _columnas_contexto_orden() -> list[sa.Column]:
    return [
        sa.Column(
            'orden_publicidad_id',
            sa.Integer(),
            sa.ForeignKey('orden_publicidad.id'),
            nullable=True,
        ),
        sa.Column(
            'item_orden_publicidad_id',
            sa.Integer(),
            sa.ForeignKey('item_orden_publicidad.id'),
            nullable=True,
        ),
        sa.Column('factura_emitida_a', sa.String(300), nullable=True),
        sa.Column('sector', sa.String(200), nullable=True),
        sa.Column('rubro', sa.String(200), nullable=True),
        sa.Column('sub_rubro', sa.String(200), nullable=True),
        sa.Column('condicion_pago', sa.String(50), nullable=True),
        sa.Column('forma_pago', sa.String(30), nullable=True),
        sa.Column('fecha_pago', sa.Date(), nullable=True),
    ]


def upgrade() -> None:
    # Órdenes de publicidad
    op.create_table(
        'orden_publicidad',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('numero_orden', sa.String(50), nullable=False),
        sa.Column('fecha', sa.Date(), nullable=True),
        sa.Column('mes_servicio', sa.String(7), nullable=True),
        sa.Column('responsable', sa.String(200), nullable=True),
        sa.Column('total_venta', sa.Numeric(15, 2), nullable=True),
        sa.Column('unidad_negocio', sa.String(200), nullable=True),
        sa.Column('categoria_negocio', sa.String(200), nullable=True),
        sa.Column('proyecto', sa.String(300), nullable=True),
        sa.Column('razon_social', sa.String(300), nullable=True),
        sa.Column('categoria', sa.String(200), nullable=True),
        sa.Column('empresa_agencia', sa.String(300), nullable=True),
        sa.Column('marca', sa.String(200), nullable=True),
        sa.Column('nombre_campana', sa.String(300), nullable=True),
        sa.Column('acuerdo_pago', sa.String(50), nullable=True),
        sa.Column('tipo_importe', sa.String(20), nullable=False),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('estado_op', sa.String(20), nullable=False),
        sa.Column('creado_por', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('numero_orden'),
    )

    op.create_table(
        'item_orden_publicidad',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            'orden_publicidad_id',
            sa.Integer(),
            sa.ForeignKey('orden_publicidad.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('programa', sa.String(200), nullable=False),
        sa.Column('monto', sa.Numeric(15, 2), nullable=True),
        sa.Column('nc_programa', sa.String(200), nullable=True),
        sa.Column('nc_porcentaje', sa.Numeric(5, 2), nullable=True),
        sa.Column('proveedor_fee', sa.String(300), nullable=True),
        sa.Column('fee_programa', sa.Numeric(15, 2), nullable=True),
        sa.Column('fee_porcentaje', sa.Numeric(5, 2), nullable=True),
        sa.Column('implementacion', sa.Numeric(15, 2), nullable=True),
        sa.Column('talentos', sa.Numeric(15, 2), nullable=True),
        sa.Column('tecnica', sa.Numeric(15, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('orden_publicidad_id', 'programa', name='uq_item_orden_programa'),
    )
    op.create_index(
        'ix_item_orden_publicidad_orden_publicidad_id',
        'item_orden_publicidad',
        ['orden_publicidad_id'],
    )

    # Formulario (header) y comprobante (core)
    op.create_table(
        'formulario',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('area', sa.String(30), nullable=False),
        sa.Column('nombre_campana', sa.String(300), nullable=True),
        sa.Column('mes_gestion', sa.String(7), nullable=True),
        sa.Column('mes_venta', sa.String(7), nullable=True),
        sa.Column('mes_inicio', sa.String(7), nullable=True),
        sa.Column('unidad_negocio', sa.String(200), nullable=True),
        sa.Column('categoria_negocio', sa.String(200), nullable=True),
        sa.Column('programa', sa.String(200), nullable=True),
        sa.Column('ejecutivo', sa.String(200), nullable=True),
        sa.Column('sub_rubro_empresa', sa.String(200), nullable=True),
        sa.Column('detalle_campana', sa.Text(), nullable=True),
        sa.Column('estado', sa.String(20), nullable=False),
        sa.Column('creado_por', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_formulario_area', 'formulario', ['area'])

    op.create_table(
        'comprobante',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('area_origen', sa.String(30), nullable=False),
        sa.Column('tipo_movimiento', sa.String(20), nullable=False),
        sa.Column('proveedor', sa.String(300), nullable=True),
        sa.Column('razon_social', sa.String(300), nullable=True),
        sa.Column('tipo_factura', sa.String(10), nullable=True),
        sa.Column('numero_factura', sa.String(50), nullable=True),
        sa.Column('fecha_factura', sa.Date(), nullable=True),
        sa.Column('moneda', sa.String(3), nullable=False),
        sa.Column('neto', sa.Numeric(15, 2), nullable=False),
        sa.Column('iva', sa.Numeric(5, 2), nullable=False),
        sa.Column('iva_monto', sa.Numeric(15, 2), nullable=True),
        sa.Column('importe_total', sa.Numeric(15, 2), nullable=True),
        sa.Column('empresa', sa.String(300), nullable=True),
        sa.Column('concepto_gasto', sa.String(500), nullable=True),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('estado', sa.String(20), nullable=False),
        sa.Column('estado_pago', sa.String(20), nullable=False),
        sa.Column('creado_por', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_comprobante_area_origen', 'comprobante', ['area_origen'])

    # Contextos por área
    op.create_table(
        'contexto_implementacion', *_columnas_contexto(), *_columnas_contexto_orden()
    )
    op.create_table(
        'contexto_tecnica', *_columnas_contexto(), *_columnas_contexto_orden()
    )
    op.create_table(
        'contexto_programacion',
        *_columnas_contexto(),
        sa.Column('categoria', sa.String(200), nullable=True),
        sa.Column('acuerdo_pago', sa.String(50), nullable=True),
        sa.Column('cliente', sa.String(300), nullable=True),
        sa.Column('monto', sa.Numeric(15, 2), nullable=True),
        sa.Column('valor_imponible', sa.Numeric(15, 2), nullable=True),
        sa.Column('bonificacion', sa.Numeric(15, 2), nullable=True),
        sa.Column('factura_emitida_a', sa.String(300), nullable=True),
        sa.Column('forma_pago', sa.String(30), nullable=True),
    )
    op.create_table(
        'contexto_experience',
        *_columnas_contexto(),
        sa.Column('factura_emitida_a', sa.String(300), nullable=True),
        sa.Column('empresa_programa', sa.String(300), nullable=True),
        sa.Column('fecha_comprobante', sa.Date(), nullable=True),
        sa.Column('acuerdo_pago', sa.String(50), nullable=True),
        sa.Column('forma_pago', sa.String(30), nullable=True),
        sa.Column('pais', sa.String(100), nullable=False, server_default='argentina'),
    )
    op.create_table(
        'contexto_productora',
        *_columnas_contexto(),
        sa.Column('empresa_programa', sa.String(300), nullable=True),
        sa.Column('fecha_comprobante', sa.Date(), nullable=True),
        sa.Column('pais', sa.String(100), nullable=False, server_default='argentina'),
        sa.Column('rubro', sa.String(200), nullable=True),
        sa.Column('sub_rubro', sa.String(200), nullable=True),
        sa.Column('factura_emitida_a', sa.String(300), nullable=True),
        sa.Column('acuerdo_pago', sa.String(50), nullable=True),
        sa.Column('forma_pago', sa.String(30), nullable=True),
    )
    for tabla in _CONTEXTOS:
        op.create_index(f'ix_{tabla}_formulario_id', tabla, ['formulario_id'])
    for tabla in ("contexto_implementacion", "contexto_tecnica"):
        op.create_index(f'ix_{tabla}_orden_publicidad_id', tabla, ['orden_publicidad_id'])
        op.create_index(
            f'ix_{tabla}_item_orden_publicidad_id', tabla, ['item_orden_publicidad_id']
        )


def downgrade() -> None:
    for tabla in reversed(_CONTEXTOS):
        op.drop_table(tabla)
    op.drop_table('comprobante')
    op.drop_table('formulario')
    op.drop_table('item_orden_publicidad')
    op.drop_table('orden_publicidad')
