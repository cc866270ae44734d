# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import enum
import warnings
from numbers import Integral, Real
import devolve.common.typing as tp
from devolve.common import errors
from devolve.common import tools as dvtools
from devolve.common.decorators import Registry

if tp.TYPE_CHECKING:
    from .differentialevolution import DifferentialEvolution


class Strategy(enum.Enum):
    """Mutation strategies, names follow Price & Storn (1997)"""

    RAND1_STANDARD = "rand1_standard"
    BEST_MEMBER_WITH_JITTER = "best_member_with_jitter"
    CURRENT_TO_BEST_2_DIFFS = "current_to_best_2_diffs"
    RAND1_DIFF_WITH_PER_VECTOR_DITHER = "rand1_diff_with_per_vector_dither"
    RAND1_DIFF_WITH_DITHER = "rand1_diff_with_dither"
    EITHER_OR_WITH_OPTIMAL_RECOMBINATION = "either_or_with_optimal_recombination"
    RAND1_SELFADAPTIVE_WITH_ROTATION = "rand1_selfadaptive_with_rotation"


class CrossoverType(enum.Enum):
    NORMAL = "normal"
    BINOMIAL = "binomial"
    EXPONENTIAL = "exponential"


E = tp.TypeVar("E", bound=enum.Enum)
registry: Registry["Configuration"] = Registry()
_SEED_LIMIT = 2**32
# below this size, the donors of a slot often coincide
_MIN_EFFICIENT_POPULATION = 4


def _as_enum(enum_cls: tp.Type[E], value: tp.Union[str, E]) -> E:
    try:
        return enum_cls(value)
    except ValueError as e:
        options = [x.value for x in enum_cls]  # type: ignore
        raise errors.ConfigurationError(f"Unknown {enum_cls.__name__} {value!r}, choose among {options}") from e


class Configuration:
    """Immutable configuration of a differential evolution run.

    Each :code:`with_*` method validates its argument and returns an updated copy,
    so that configurations can be built fluently:

    >>> config = Configuration().with_strategy("rand1_standard").with_population_members(40)
    >>> optimizer = config()

    Parameters
    ----------
    strategy: Strategy or str
        mutation strategy used to build the mutant population
    crossover_type: CrossoverType or str
        scheme deriving the per-coordinate mutation probability from the crossover probability
    population_members: int
        number of members of the population (positive)
    stepsize_weight: float
        differential weight F, in [0, 2]
    crossover_probability: float
        crossover probability CR, in [0, 1]
    seed: int or None
        seed of the random stream (defaults to 0 so that equal configurations give identical runs),
        None for a non-deterministic run seeded from the operating system
    apply_bounds: bool
        whether to reflect out-of-bounds coordinates back into the box
    crossover_is_adaptive: bool
        whether the crossover probability of each member self-adapts across generations

    Note
    ----
    Setting an attribute raises an error, use the :code:`with_*` methods instead.
    """

    def __init__(
        self,
        *,
        strategy: tp.Union[str, Strategy] = "best_member_with_jitter",
        crossover_type: tp.Union[str, CrossoverType] = "normal",
        population_members: int = 100,
        stepsize_weight: float = 0.2,
        crossover_probability: float = 0.9,
        seed: tp.Optional[int] = 0,
        apply_bounds: bool = True,
        crossover_is_adaptive: bool = False,
    ) -> None:
        if isinstance(population_members, bool) or not isinstance(population_members, Integral):
            raise errors.ConfigurationError(f"Population members must be an integer, got {population_members!r}")
        if population_members <= 0:
            raise errors.ConfigurationError("Positive number of population members required")
        if not isinstance(stepsize_weight, Real) or not 0.0 <= stepsize_weight <= 2.0:
            raise errors.ConfigurationError(f"Step size weight ({stepsize_weight}) must be in [0,2] range")
        if not isinstance(crossover_probability, Real) or not 0.0 <= crossover_probability <= 1.0:
            raise errors.ConfigurationError(
                f"Crossover probability ({crossover_probability}) must be in [0,1] range"
            )
        if seed is not None and (
            isinstance(seed, bool) or not isinstance(seed, Integral) or not 0 <= seed < _SEED_LIMIT
        ):
            raise errors.ConfigurationError(f"Seed ({seed!r}) must be None or an integer in [0, 2**32)")
        if population_members < _MIN_EFFICIENT_POPULATION:
            warnings.warn(
                f"{population_members} population members are too few for distinct donors, "
                f"at least {_MIN_EFFICIENT_POPULATION} are recommended",
                errors.InefficientSettingsWarning,
            )
        params = dict(
            strategy=_as_enum(Strategy, strategy),
            crossover_type=_as_enum(CrossoverType, crossover_type),
            population_members=int(population_members),
            stepsize_weight=float(stepsize_weight),
            crossover_probability=float(crossover_probability),
            seed=None if seed is None else int(seed),
            apply_bounds=bool(apply_bounds),
            crossover_is_adaptive=bool(crossover_is_adaptive),
        )
        object.__setattr__(self, "_config", params)
        diff = dvtools.different_from_defaults(instance=self, instance_dict=self._repr_dict(), check_mismatches=True)
        text = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        object.__setattr__(self, "name", f"{self.__class__.__name__}({text})")

    # accessors #

    @property
    def strategy(self) -> Strategy:
        return self._config["strategy"]  # type: ignore

    @property
    def crossover_type(self) -> CrossoverType:
        return self._config["crossover_type"]  # type: ignore

    @property
    def population_members(self) -> int:
        return self._config["population_members"]  # type: ignore

    @property
    def stepsize_weight(self) -> float:
        return self._config["stepsize_weight"]  # type: ignore

    @property
    def crossover_probability(self) -> float:
        return self._config["crossover_probability"]  # type: ignore

    @property
    def seed(self) -> tp.Optional[int]:
        return self._config["seed"]  # type: ignore

    @property
    def apply_bounds(self) -> bool:
        return self._config["apply_bounds"]  # type: ignore

    @property
    def crossover_is_adaptive(self) -> bool:
        return self._config["crossover_is_adaptive"]  # type: ignore

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(self._config)  # type: ignore

    def _repr_dict(self) -> tp.Dict[str, tp.Any]:
        # enums as their string values, as in the signature defaults
        return {x: y.value if isinstance(y, enum.Enum) else y for x, y in self.config().items()}

    # fluent builders #

    def _updated(self, **kwargs: tp.Any) -> "Configuration":
        params = self.config()
        params.update(kwargs)
        if params["population_members"] != self.population_members:
            return self.__class__(**params)
        # settings warnings were already issued for this population size
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=errors.InefficientSettingsWarning)
            return self.__class__(**params)

    def with_strategy(self, strategy: tp.Union[str, Strategy]) -> "Configuration":
        return self._updated(strategy=strategy)

    def with_crossover_type(self, crossover_type: tp.Union[str, CrossoverType]) -> "Configuration":
        return self._updated(crossover_type=crossover_type)

    def with_population_members(self, population_members: int) -> "Configuration":
        return self._updated(population_members=population_members)

    def with_stepsize_weight(self, stepsize_weight: float) -> "Configuration":
        return self._updated(stepsize_weight=stepsize_weight)

    def with_crossover_probability(self, crossover_probability: float) -> "Configuration":
        return self._updated(crossover_probability=crossover_probability)

    def with_seed(self, seed: tp.Optional[int]) -> "Configuration":
        return self._updated(seed=seed)

    def with_bounds(self, apply_bounds: bool = True) -> "Configuration":
        return self._updated(apply_bounds=apply_bounds)

    def with_adaptive_crossover(self, crossover_is_adaptive: bool = True) -> "Configuration":
        return self._updated(crossover_is_adaptive=crossover_is_adaptive)

    # misc #

    def __setattr__(self, name: str, value: tp.Any) -> None:
        raise errors.DevolveRuntimeError(
            f"Cannot set {name} on an immutable {self.__class__.__name__}, use the with_* methods instead"
        )

    def __call__(self) -> "DifferentialEvolution":
        """Creates a new optimizer (with a fresh random stream) from this configuration"""
        from .differentialevolution import DifferentialEvolution  # pylint: disable=import-outside-toplevel

        return DifferentialEvolution(self)

    def __repr__(self) -> str:
        return self.name  # type: ignore

    def set_name(self, name: str, register: bool = False) -> "Configuration":
        """Set a new representation for the instance, and optionally registers it"""
        object.__setattr__(self, "name", name)
        if register:
            registry.register_name(name, self)
        return self

    def __eq__(self, other: tp.Any) -> tp.Any:
        if self.__class__ == other.__class__:
            return self._config == other._config  # type: ignore
        return False

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._repr_dict().items())))


DE = Configuration().set_name("DE", register=True)
Rand1DE = Configuration(strategy=Strategy.RAND1_STANDARD, stepsize_weight=0.5).set_name(
    "Rand1DE", register=True
)
CurrentToBestDE = Configuration(strategy=Strategy.CURRENT_TO_BEST_2_DIFFS, stepsize_weight=0.5).set_name(
    "CurrentToBestDE", register=True
)
PerVectorDitherDE = Configuration(
    strategy=Strategy.RAND1_DIFF_WITH_PER_VECTOR_DITHER, stepsize_weight=0.5
).set_name("PerVectorDitherDE", register=True)
DitherDE = Configuration(strategy=Strategy.RAND1_DIFF_WITH_DITHER, stepsize_weight=0.5).set_name(
    "DitherDE", register=True
)
EitherOrDE = Configuration(strategy=Strategy.EITHER_OR_WITH_OPTIMAL_RECOMBINATION, stepsize_weight=0.5).set_name(
    "EitherOrDE", register=True
)
# weights and crossover probabilities self-adapt, following Brest et al. (2006)
SelfAdaptiveDE = Configuration(
    strategy=Strategy.RAND1_SELFADAPTIVE_WITH_ROTATION, crossover_is_adaptive=True
).set_name("SelfAdaptiveDE", register=True)
BinomialDE = Configuration(crossover_type=CrossoverType.BINOMIAL, crossover_probability=0.5).set_name(
    "BinomialDE", register=True
)
ExponentialDE = Configuration(crossover_type=CrossoverType.EXPONENTIAL, crossover_probability=0.5).set_name(
    "ExponentialDE", register=True
)
