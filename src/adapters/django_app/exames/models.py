"""
Django Models para o domínio de Exames.

Estes models são ADAPTERS - implementam a persistência para as
entidades de domínio definidas em src/core/exames/entities.py.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Lógica de negócio (preço herdado, cascatas) fica nos Use Cases do Core
- Models são mapeados para/de Entities via Mappers

Tabela `exames` (nomes de coluna preservados do schema legado):
    id, codigo, nome, descricao, preco, type, active,
    exame_base_id, deleted_at, created_at, updated_at
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone


class ExameTipoChoices(models.TextChoices):
    """Choices para tipo de exame (espelha ExameTipo do Core)."""
    BASE = 'Exame', 'Exame Base'
    PERSONALIZADO = 'ExamePersonalizado', 'Exame Personalizado'


class ExameModel(models.Model):
    """
    Model Django para persistência de Exames.

    Fields:
        id: Serial atribuído pelo banco
        codigo: Código (único entre não excluídos)
        nome: Nome (único entre não excluídos)
        descricao: Texto livre
        preco: DECIMAL(10,2)
        tipo: Discriminador (coluna `type`)
        ativo: Coluna `active`
        exame_base: Exame pai (somente personalizados)
        excluido_em: Exclusão lógica (coluna `deleted_at`)
        criado_em / atualizado_em: Timestamps mantidos pelo Core
    """

    id = models.AutoField(primary_key=True)

    codigo = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Código do exame"
    )

    nome = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Nome do exame"
    )

    descricao = models.TextField(
        blank=True,
        default='',
        help_text="Descrição do exame"
    )

    preco = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Preço do exame"
    )

    tipo = models.CharField(
        max_length=50,
        db_column='type',
        choices=ExameTipoChoices.choices,
        default=ExameTipoChoices.BASE,
        db_index=True,
        help_text="Tipo do exame"
    )

    ativo = models.BooleanField(
        db_column='active',
        default=True,
        help_text="Se o exame está ativo"
    )

    exame_base = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        db_column='exame_base_id',
        related_name='personalizados',
        help_text="Exame base (somente personalizados)"
    )

    excluido_em = models.DateTimeField(
        db_column='deleted_at',
        null=True,
        blank=True,
        db_index=True,
        help_text="Data/hora da exclusão lógica"
    )

    criado_em = models.DateTimeField(
        db_column='created_at',
        default=timezone.now,
        help_text="Data/hora de criação"
    )

    # Mantido pelo Core (cascatas também atualizam), por isso sem auto_now
    atualizado_em = models.DateTimeField(
        db_column='updated_at',
        default=timezone.now,
        help_text="Data/hora da última atualização"
    )

    class Meta:
        db_table = 'exames'
        verbose_name = 'Exame'
        verbose_name_plural = 'Exames'
        ordering = ['-criado_em']
        constraints = [
            models.UniqueConstraint(
                fields=['codigo'],
                condition=Q(excluido_em__isnull=True),
                name='exames_codigo_unico_vivo',
            ),
            models.UniqueConstraint(
                fields=['nome'],
                condition=Q(excluido_em__isnull=True),
                name='exames_nome_unico_vivo',
            ),
            models.CheckConstraint(
                condition=(
                    Q(tipo='Exame', exame_base__isnull=True)
                    | Q(tipo='ExamePersonalizado', exame_base__isnull=False)
                ),
                name='exames_tipo_exame_base_consistente',
            ),
        ]

    def __str__(self):
        return f"[{self.codigo}] {self.nome}"

    def __repr__(self):
        return f"<ExameModel id={self.id} tipo={self.tipo}>"
