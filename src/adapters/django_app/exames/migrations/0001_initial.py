"""
Migration inicial para o domínio de Exames.

Cria a tabela `exames` com:
- Unicidade parcial de codigo e nome (apenas registros não excluídos)
- Consistência entre tipo e exame_base_id
- Índices em codigo, nome, type e deleted_at
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    """Migration inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='ExameModel',
            fields=[
                ('id', models.AutoField(primary_key=True, serialize=False)),
                ('codigo', models.CharField(
                    max_length=50,
                    db_index=True,
                    help_text='Código do exame'
                )),
                ('nome', models.CharField(
                    max_length=255,
                    db_index=True,
                    help_text='Nome do exame'
                )),
                ('descricao', models.TextField(
                    blank=True,
                    default='',
                    help_text='Descrição do exame'
                )),
                ('preco', models.DecimalField(
                    max_digits=10,
                    decimal_places=2,
                    help_text='Preço do exame'
                )),
                ('tipo', models.CharField(
                    max_length=50,
                    db_column='type',
                    choices=[
                        ('Exame', 'Exame Base'),
                        ('ExamePersonalizado', 'Exame Personalizado'),
                    ],
                    default='Exame',
                    db_index=True,
                    help_text='Tipo do exame'
                )),
                ('ativo', models.BooleanField(
                    db_column='active',
                    default=True,
                    help_text='Se o exame está ativo'
                )),
                ('excluido_em', models.DateTimeField(
                    db_column='deleted_at',
                    null=True,
                    blank=True,
                    db_index=True,
                    help_text='Data/hora da exclusão lógica'
                )),
                ('criado_em', models.DateTimeField(
                    db_column='created_at',
                    default=django.utils.timezone.now,
                    help_text='Data/hora de criação'
                )),
                ('atualizado_em', models.DateTimeField(
                    db_column='updated_at',
                    default=django.utils.timezone.now,
                    help_text='Data/hora da última atualização'
                )),
                ('exame_base', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    null=True,
                    blank=True,
                    db_column='exame_base_id',
                    related_name='personalizados',
                    to='exames.examemodel',
                    help_text='Exame base (somente personalizados)'
                )),
            ],
            options={
                'verbose_name': 'Exame',
                'verbose_name_plural': 'Exames',
                'db_table': 'exames',
                'ordering': ['-criado_em'],
            },
        ),
        migrations.AddConstraint(
            model_name='examemodel',
            constraint=models.UniqueConstraint(
                fields=('codigo',),
                condition=models.Q(excluido_em__isnull=True),
                name='exames_codigo_unico_vivo',
            ),
        ),
        migrations.AddConstraint(
            model_name='examemodel',
            constraint=models.UniqueConstraint(
                fields=('nome',),
                condition=models.Q(excluido_em__isnull=True),
                name='exames_nome_unico_vivo',
            ),
        ),
        migrations.AddConstraint(
            model_name='examemodel',
            constraint=models.CheckConstraint(
                condition=(
                    models.Q(tipo='Exame', exame_base__isnull=True)
                    | models.Q(tipo='ExamePersonalizado', exame_base__isnull=False)
                ),
                name='exames_tipo_exame_base_consistente',
            ),
        ),
    ]
