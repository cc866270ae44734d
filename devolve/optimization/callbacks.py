# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import json
import time
import warnings
import datetime
import logging
from pathlib import Path
import numpy as np
import pandas as pd
import devolve.common.typing as tp
from .differentialevolution import DifferentialEvolution

global_logger = logging.getLogger(__name__)


class OptimizationLogger:
    """Logger to register as "generation" callback in an optimizer, for logging
    the best candidate regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_generations: int
        max number of generations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_generations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_generations > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_generations = int(log_interval_generations)
        self._log_interval_seconds = log_interval_seconds
        self._next_generation = self._log_interval_generations
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        if time.time() >= self._next_time or optimizer.num_generations >= self._next_generation:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_generation = optimizer.num_generations + self._log_interval_generations
            best = optimizer.best
            assert best is not None
            self._logger.log(
                self._log_level,
                "After %s generation(s) and %s evaluation(s), best cost is %s at %s",
                optimizer.num_generations,
                optimizer.num_evaluations,
                best.cost,
                best.values.tolist(),
            )


class ParametersLogger:
    """Logs the state of each generation into a file (one json dict per line)
    during optimization.

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to
    append: bool
        whether to append the file (otherwise it replaces it)

    Example
    -------

    .. code-block:: python

        logger = ParametersLogger(filepath)
        optimizer.register_callback("generation", logger)
        optimizer.minimize(problem, end_criteria)
        df = logger.to_dataframe()
    """

    def __init__(self, filepath: tp.PathLike, append: bool = True) -> None:
        self._session = datetime.datetime.now().strftime("%y-%m-%d %H:%M:%S")
        self._filepath = Path(filepath)
        if self._filepath.exists() and not append:
            self._filepath.unlink()
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, optimizer: DifferentialEvolution) -> None:
        best = optimizer.best
        population = optimizer.population
        state = optimizer.member_state
        assert best is not None and population is not None and state is not None
        data: tp.Dict[str, tp.Any] = {
            "#optimizer": optimizer.name,
            "#session": self._session,
            "#generation": optimizer.num_generations,
            "#num-evaluations": optimizer.num_evaluations,
            "#best-cost": best.cost,
            "#generation-best-cost": float(np.min(population.costs)),
            "#mean-stepsize-weight": float(np.mean(state.stepsize_weights)),
            "#mean-crossover-probability": float(np.mean(state.crossover_probabilities)),
        }
        data.update({f"best#{k}": float(val) for k, val in enumerate(best.values)})
        try:  # avoid bugging as much as possible
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")
        except Exception as e:  # pylint: disable=broad-except
            warnings.warn(f"Failing to json data: {e}")

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file"""
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data

    def to_dataframe(self) -> pd.DataFrame:
        """Loads data from the log file as a dataframe, with one row per generation"""
        return pd.DataFrame(self.load())
