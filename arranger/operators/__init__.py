"""
Operators: small, stateless units of musical judgement.

Each operator belongs to one :class:`~arranger.operators.base.OperatorFamily`
and answers three questions per bar: can I apply here, what would I add,
what would I take away. Registries (:mod:`arranger.operators.drums`,
:mod:`arranger.operators.bass`) hold a role's operators in a fixed order and
are frozen once built.
"""
