"""
仿真运行器
==========

驱动 DuressPlant 逐步推进，并负责:
- 绩效评分与稳态判定
- 终止信号 (致命故障 / 稳态 / 外部停止 / 步数上限)
- 生命周期: IDLE -> RUNNING <-> PAUSED -> COMPLETED | FAILED | ABORTED
- 后台线程按实时节拍运行
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, List, Optional

from ..config.settings import PlantConfig
from ..core.constants import TerminationReason
from ..core.base_physics import FatalFault
from ..analysis.score import Score, SteadyStateTracker, classify
from ..analysis.logger import TrialLogger
from .plant import DuressPlant
from .pipeline import TickPipeline, PipelineStep, TickResult

logger = logging.getLogger('DURESS.Runner')


class SimulationStatus(Enum):
    """运行状态"""
    IDLE = auto()
    RUNNING = auto()
    PAUSED = auto()
    COMPLETED = auto()     # 稳态或步数上限
    FAILED = auto()        # 致命故障或异常
    ABORTED = auto()       # 外部停止


_TERMINAL = (SimulationStatus.COMPLETED, SimulationStatus.FAILED, SimulationStatus.ABORTED)


@dataclass
class SimulationClock:
    """仿真时钟 (稳态计时委托给 SteadyStateTracker)"""
    dt: int
    steady: SteadyStateTracker
    t: int = 0

    @property
    def steady_time(self) -> int:
        return self.steady.steady_time

    @property
    def steady_limit(self) -> int:
        return self.steady.steady_limit

    @property
    def steady_min_time(self) -> int:
        return self.steady.steady_min_time

    def advance(self):
        self.t += self.dt


@dataclass
class SimulationResult:
    """运行结果"""
    status: SimulationStatus
    reason: Optional[TerminationReason]
    message: str
    ticks: int
    t: int
    steady_time: int
    score: List[List[float]]
    fatal: Optional[FatalFault] = None
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == SimulationStatus.COMPLETED


class SimulationRunner:
    """
    仿真运行器

    回调事件:
    - on_step(t, snapshot): 每步完成后
    - on_fatal_error(fault): 致命故障
    - on_steady_state(steady_time): 达到稳态
    """

    CALLBACK_EVENTS = ('on_step', 'on_fatal_error', 'on_steady_state')

    def __init__(self, config: PlantConfig = None, trial_logger: TrialLogger = None):
        self.config = config or PlantConfig()
        self.sim = self.config.simulation

        self.plant = DuressPlant(self.config)
        self.score = Score()
        self.clock = SimulationClock(
            dt=self.sim.dt,
            steady=SteadyStateTracker(self.sim.steady_limit, self.sim.steady_min_time)
        )
        if trial_logger is None:
            trial_logger = TrialLogger(buffer_size=self.sim.history_size)
        self.trial_logger = trial_logger
        self.pipeline = self._build_pipeline()

        # 生命周期
        self.status = SimulationStatus.IDLE
        self.reason: Optional[TerminationReason] = None
        self.message = ''
        self.fatal: Optional[FatalFault] = None
        self.ticks = 0
        self.errors: List[str] = []

        self._steady_reached = False
        self._resume_event = threading.Event()
        self._resume_event.set()
        self._stop_requested = False
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()

        self.callbacks: Dict[str, Callable] = {}

    def register_callback(self, event: str, callback: Callable):
        """注册回调"""
        if event not in self.CALLBACK_EVENTS:
            raise ValueError(f"未知回调事件: {event}")
        self.callbacks[event] = callback

    def _build_pipeline(self) -> TickPipeline:
        """物理管线 + 评分 + 稳态判定"""
        pipeline = self.plant.build_pipeline()
        pipeline.add(PipelineStep('score', self._update_score,
                                  after=('check_reservoir_1', 'check_reservoir_2')))
        pipeline.add(PipelineStep('steady_state', self._update_steady_state,
                                  after=('score',)))
        return pipeline

    def _update_score(self, t: int, dt: int):
        self.score.record_all(self.plant.reservoirs, dt)

    def _update_steady_state(self, t: int, dt: int):
        if self.clock.steady.update(self.plant.reservoirs, dt):
            self._steady_reached = True

    @property
    def is_terminal(self) -> bool:
        return self.status in _TERMINAL

    # ------------------------------------------------------------------
    # 单步
    # ------------------------------------------------------------------

    def tick(self) -> TickResult:
        """
        执行一步

        致命故障或稳态时终止运行，且时钟不再前进。
        """
        with self._lock:
            if self.is_terminal:
                raise RuntimeError(f"运行已结束: {self.status.name}")

            t, dt = self.clock.t, self.clock.dt
            result = self.plant.step(t, dt, self.pipeline)
            self.ticks += 1

            if result.fatal is not None:
                self._handle_fatal(result.fatal)
                return result

            snapshot = self.snapshot()
            self.trial_logger.log_snapshot(t, snapshot)
            if 'on_step' in self.callbacks:
                self.callbacks['on_step'](t, snapshot)

            if self._steady_reached:
                self._handle_steady_state()
                return result

            self.clock.advance()
        return result

    def _handle_fatal(self, fault: FatalFault):
        self.fatal = fault
        self._terminate(SimulationStatus.FAILED, TerminationReason.FATAL_ERROR,
                        fault.message)
        if 'on_fatal_error' in self.callbacks:
            self.callbacks['on_fatal_error'](fault)

    def _handle_steady_state(self):
        steady_time = self.clock.steady_time
        logger.info(f"[t={self.clock.t}] 稳态保持 {steady_time / 1000:.0f} s")
        self._terminate(SimulationStatus.COMPLETED, TerminationReason.STEADY_STATE,
                        "系统达到稳态")
        if 'on_steady_state' in self.callbacks:
            self.callbacks['on_steady_state'](steady_time)

    def _terminate(self, status: SimulationStatus, reason: TerminationReason,
                   message: str):
        """进入终止状态 (调用方持有锁；终止状态不再改变)"""
        if self.is_terminal:
            return
        self.status = status
        self.reason = reason
        self.message = message
        self.trial_logger.end_simulation(message, self.clock.t, reason, self.score.to_list())

    def snapshot(self) -> Dict:
        """当前步的完整状态快照"""
        return {
            't': self.clock.t,
            'steady_time': self.clock.steady_time,
            'components': self.plant.get_state_dict(),
            'classification': {r.name: classify(r) for r in self.plant.reservoirs},
            'score': self.score.to_list(),
        }

    # ------------------------------------------------------------------
    # 运行
    # ------------------------------------------------------------------

    def run(self, max_ticks: int = None) -> SimulationResult:
        """
        运行至终止信号或步数上限

        Parameters:
            max_ticks: 最大步数 (None=不限)

        Returns:
            SimulationResult: 运行结果
        """
        with self._lock:
            if self.is_terminal:
                raise RuntimeError(f"运行已结束: {self.status.name}")
            if self.status == SimulationStatus.IDLE:
                self.status = SimulationStatus.RUNNING
                logger.info(f"仿真开始 dt={self.clock.dt} 实时={self.sim.realtime}")

        executed = 0
        try:
            while not self.is_terminal:
                self._resume_event.wait()
                with self._lock:
                    if self.is_terminal:
                        break
                    if self.status == SimulationStatus.PAUSED:
                        continue
                    if self._stop_requested:
                        self._terminate(SimulationStatus.ABORTED, TerminationReason.STOPPED,
                                        "运行被停止")
                        break
                    if max_ticks is not None and executed >= max_ticks:
                        self._terminate(SimulationStatus.COMPLETED, TerminationReason.TICK_LIMIT,
                                        f"达到步数上限 {max_ticks}")
                        break

                    self.tick()
                    executed += 1

                if self.sim.realtime and not self.is_terminal:
                    time.sleep(self.clock.dt / 1000 * self.sim.time_scale)
        except Exception as e:
            self.errors.append(f"Simulation error at t={self.clock.t}: {e}")
            self.status = SimulationStatus.FAILED
            logger.exception(f"[t={self.clock.t}] 仿真异常")
            raise

        logger.info(f"仿真结束: {self.status.name} ({self.message})")
        return self.result()

    def start(self, max_ticks: int = None):
        """在后台线程中运行"""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("仿真已在运行")
        self._thread = threading.Thread(target=self.run, args=(max_ticks,),
                                        name='duress-runner', daemon=True)
        self._thread.start()

    def pause(self):
        """
        在下一个步边界暂停

        同步 run() 期间须从其他线程调用，否则运行线程会一直阻塞。
        终止后调用无效。
        """
        with self._lock:
            if self.status == SimulationStatus.RUNNING:
                self._resume_event.clear()
                self.status = SimulationStatus.PAUSED
                logger.info(f"[t={self.clock.t}] 暂停")

    def resume(self):
        with self._lock:
            if self.status == SimulationStatus.PAUSED:
                self.status = SimulationStatus.RUNNING
                self._resume_event.set()
                logger.info(f"[t={self.clock.t}] 继续")

    def stop(self):
        """停止运行 (不再发出新的步)"""
        with self._lock:
            if self.is_terminal:
                return
            self._stop_requested = True
            if self.status == SimulationStatus.PAUSED:
                self.status = SimulationStatus.RUNNING
            self._resume_event.set()
            if self.status == SimulationStatus.IDLE:
                self._terminate(SimulationStatus.ABORTED, TerminationReason.STOPPED,
                                "运行被停止")

    def join(self, timeout: float = None):
        if self._thread is not None:
            self._thread.join(timeout)

    # ------------------------------------------------------------------
    # 操作员入口
    # ------------------------------------------------------------------

    def apply_control(self, control_inputs: Dict[str, float]):
        """应用操作员设定并记录"""
        with self._lock:
            self.plant.apply_control(control_inputs)
            for name, value in control_inputs.items():
                self.trial_logger.setting_changed(name, value, self.clock.t)

    def set_pump_state(self, name: str, on: bool):
        with self._lock:
            self.plant.set_pump_state(name, on)
            self.trial_logger.setting_changed(name, float(bool(on)), self.clock.t)

    def result(self) -> SimulationResult:
        return SimulationResult(
            status=self.status,
            reason=self.reason,
            message=self.message,
            ticks=self.ticks,
            t=self.clock.t,
            steady_time=self.clock.steady_time,
            score=self.score.to_list(),
            fatal=self.fatal,
            errors=list(self.errors)
        )
