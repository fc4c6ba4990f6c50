"""
试验记录器
==========

一次运行 (trial) 的记录:
- 每步每个水箱一行: 水位、温度、出流、需求与绩效分类
- 操作员设定变更
- 终止记录 (原因、消息、最终绩效矩阵)

行缓冲有上限 (最旧的行被丢弃)；只在显式请求时写文件。
时间戳均为仿真时间 t (缩放毫秒)。
"""

import csv
import json
from collections import deque
from dataclasses import dataclass, asdict, fields
from typing import Dict, List, Optional

import numpy as np

from ..core.constants import TerminationReason


@dataclass
class ReservoirRow:
    """单个水箱在某一步的记录"""
    t: int
    reservoir: str
    water_level: float
    temperature: float
    mass_flow_out: float
    demand: float
    outlet_setting: float
    score_row: int          # 温度分类
    score_column: int       # 流量分类
    error_state: str


@dataclass
class SettingChange:
    """操作员设定变更"""
    t: int
    component: str
    value: float


@dataclass
class TerminationRecord:
    """运行终止记录"""
    t: int
    reason: Optional[str]
    message: str
    score: List[List[float]]


ROW_FIELDS = [f.name for f in fields(ReservoirRow)]


class TrialLogger:
    """
    试验记录器

    由 SimulationRunner 在每步完成后调用 log_snapshot。
    """

    def __init__(self, buffer_size: int = 10000):
        if buffer_size <= 0:
            raise ValueError("记录缓冲必须为正")
        self.buffer_size = buffer_size
        self.rows: deque = deque(maxlen=buffer_size)
        self.settings: List[SettingChange] = []
        self.termination: Optional[TerminationRecord] = None
        self.ticks_logged = 0

    def log_snapshot(self, t: int, snapshot: Dict):
        """
        从运行器快照提取每个水箱的一行

        Parameters:
            t: 仿真时间
            snapshot: SimulationRunner.snapshot() 的返回值
        """
        components = snapshot['components']
        for name, (row, column) in snapshot['classification'].items():
            state = components[name]
            self.rows.append(ReservoirRow(
                t=t,
                reservoir=name,
                water_level=state['water_level'],
                temperature=state['temperature'],
                mass_flow_out=state['mass_flow_out'],
                demand=state['demand'],
                outlet_setting=state['setting'],
                score_row=row,
                score_column=column,
                error_state=state['error_state']
            ))
        self.ticks_logged += 1

    def setting_changed(self, component: str, value: float, t: int = 0):
        self.settings.append(SettingChange(t, component, float(value)))

    def end_simulation(self, message: str, t: int = 0,
                       reason: TerminationReason = None,
                       score: List[List[float]] = None):
        """记录运行结束"""
        self.termination = TerminationRecord(
            t=t,
            reason=reason.name if reason is not None else None,
            message=message,
            score=score or []
        )

    @property
    def end_message(self) -> Optional[str]:
        return self.termination.message if self.termination else None

    def reservoir_rows(self, reservoir: str) -> List[ReservoirRow]:
        return [r for r in self.rows if r.reservoir == reservoir]

    def series(self, reservoir: str, field_name: str) -> np.ndarray:
        """某水箱某字段的时间序列"""
        if field_name not in ROW_FIELDS:
            raise KeyError(field_name)
        return np.array([getattr(r, field_name) for r in self.reservoir_rows(reservoir)])

    def reservoir_names(self) -> List[str]:
        names = []
        for r in self.rows:
            if r.reservoir not in names:
                names.append(r.reservoir)
        return names

    def to_dict(self) -> Dict:
        return {
            'ticks_logged': self.ticks_logged,
            'reservoirs': [asdict(r) for r in self.rows],
            'settings': [asdict(s) for s in self.settings],
            'termination': asdict(self.termination) if self.termination else None
        }

    def save_to_file(self, filename: str):
        """保存为 JSON"""
        with open(filename, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def export_csv(self, filename: str):
        """水箱行导出为 CSV (每步每水箱一行)"""
        with open(filename, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=ROW_FIELDS)
            writer.writeheader()
            for r in self.rows:
                writer.writerow(asdict(r))
