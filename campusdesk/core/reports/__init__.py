"""
Relatórios - estatísticas do painel e desempenho de agentes.
"""
