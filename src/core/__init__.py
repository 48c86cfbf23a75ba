"""
Núcleo do cadastro de exames.

Regras de preço, hierarquia base/personalizado e cascatas vivem aqui,
sem importar Django, Celery ou qualquer adapter. Os testes do núcleo
rodam sobre o repositório e o Unit of Work em memória.
"""
