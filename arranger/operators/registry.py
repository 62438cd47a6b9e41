import logging
import typing

import arranger.operators.base


logger = logging.getLogger(__name__)


class OperatorRegistry:

	"""
	Holds a role's operators in registration order.

	Populate with :meth:`register`, then :meth:`freeze`. Registering a
	duplicate id raises ``ValueError``; registering after the freeze raises
	``RuntimeError``. A frozen registry is read-only and may be shared.

	Example::

		registry = OperatorRegistry()
		registry.register(GhostBeforeBackbeat())
		registry.freeze()
		registry.get("GhostBeforeBackbeat")
	"""

	def __init__ (self, name: str = "") -> None:

		self.name = name
		self._operators: typing.Dict[str, arranger.operators.base.Operator] = {}
		self._frozen = False

	@property
	def is_frozen (self) -> bool:
		return self._frozen

	def register (self, operator: arranger.operators.base.Operator) -> None:

		"""Add an operator; ids must be unique and the registry not yet frozen."""

		if self._frozen:
			raise RuntimeError(f"Registry {self.name!r} is frozen; cannot register {operator.operator_id!r}")

		if not operator.operator_id:
			raise ValueError(f"{type(operator).__name__} has no operator_id")

		if operator.operator_id in self._operators:
			raise ValueError(f"Duplicate operator id {operator.operator_id!r} in registry {self.name!r}")

		self._operators[operator.operator_id] = operator

	def register_all (self, operators: typing.Iterable[arranger.operators.base.Operator]) -> None:
		for operator in operators:
			self.register(operator)

	def freeze (self) -> None:

		"""Make the registry read-only."""

		self._frozen = True
		logger.debug(f"Registry {self.name!r} frozen with {len(self._operators)} operators")

	def get (self, operator_id: str) -> arranger.operators.base.Operator:

		"""Return an operator by id; raises ``ValueError`` if it is not registered."""

		if operator_id not in self._operators:
			raise ValueError(f"Unknown operator {operator_id!r} in registry {self.name!r}")

		return self._operators[operator_id]

	def try_get (self, operator_id: str) -> typing.Optional[arranger.operators.base.Operator]:
		return self._operators.get(operator_id)

	def by_family (self, family: arranger.operators.base.OperatorFamily) -> typing.List[arranger.operators.base.Operator]:

		"""Return a family's operators in registration order."""

		return [op for op in self._operators.values() if op.family == family]

	def all (self) -> typing.List[arranger.operators.base.Operator]:
		return list(self._operators.values())

	def ids (self) -> typing.List[str]:
		return list(self._operators)

	def __len__ (self) -> int:
		return len(self._operators)

	def __contains__ (self, operator_id: object) -> bool:
		return operator_id in self._operators

	def __iter__ (self) -> typing.Iterator[arranger.operators.base.Operator]:
		return iter(list(self._operators.values()))
