#!/usr/bin/env python3
"""
DURESS 命令行接口
=================

用法:
    python -m duress.cli run [--duration SECONDS] [--config FILE] [--output FILE]
    python -m duress.cli config [--output FILE]
"""

import argparse
import json
import logging
import sys

logger = logging.getLogger('DURESS.CLI')


def _load_config(path: str = None):
    from .config.settings import PlantConfig

    if not path:
        return PlantConfig()
    with open(path, 'r', encoding='utf-8') as f:
        return PlantConfig.from_dict(json.load(f))


def cmd_run(args):
    """运行仿真"""
    from .simulation.runner import SimulationRunner, SimulationStatus

    config = _load_config(args.config)
    if args.dt is not None:
        config.simulation.dt = args.dt
    if args.realtime:
        config.simulation.realtime = True
        config.simulation.time_scale = args.time_scale

    max_ticks = None
    if args.duration is not None:
        max_ticks = max(int(args.duration * 1000 // config.simulation.dt), 0)

    logger.info(f"启动仿真: dt={config.simulation.dt}, 步数上限={max_ticks}")

    runner = SimulationRunner(config)
    trial_logger = runner.trial_logger
    result = runner.run(max_ticks)

    print("\n" + "=" * 50)
    print("仿真结束")
    print("=" * 50)
    print(f"状态: {result.status.name}")
    print(f"原因: {result.reason.name if result.reason else '-'}")
    print(f"消息: {result.message}")
    print(f"步数: {result.ticks}")
    print(f"仿真时间: {result.t / 1000:.1f} s")
    print(f"稳态时长: {result.steady_time / 1000:.1f} s")

    print("\n绩效矩阵 (行: 温度低/正常/高, 列: 流量不足/达标/过量):")
    for row in result.score:
        print("  " + "  ".join(f"{v:10.2f}" for v in row))

    if args.output:
        trial_logger.save_to_file(args.output)
        print(f"\n记录已保存到: {args.output}")
    if args.csv:
        trial_logger.export_csv(args.csv)
        print(f"CSV 已导出到: {args.csv}")

    return 1 if result.status == SimulationStatus.FAILED else 0


def cmd_config(args):
    """输出默认配置"""
    config = _load_config(args.config)
    text = json.dumps(config.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(text + '\n')
        print(f"配置已保存到: {args.output}")
    else:
        print(text)
    return 0


def main(argv=None):
    """主入口"""
    parser = argparse.ArgumentParser(
        description='DURESS 热工水力微世界命令行工具',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  duress run --duration 600 --output trial.json
  duress run --config plant.json --realtime --time-scale 0.1
  duress config --output plant.json
"""
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='详细日志')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    run_parser = subparsers.add_parser('run', help='运行仿真')
    run_parser.add_argument('--duration', type=float, default=600,
                            help='仿真时长(秒)，到达后停止')
    run_parser.add_argument('--dt', type=int, default=None,
                            help='时间步长(缩放毫秒)')
    run_parser.add_argument('--config', '-c', type=str,
                            help='JSON 配置文件')
    run_parser.add_argument('--realtime', action='store_true',
                            help='按墙钟节拍运行')
    run_parser.add_argument('--time-scale', type=float, default=1.0,
                            help='墙钟节拍缩放')
    run_parser.add_argument('--output', '-o', type=str,
                            help='试验记录 JSON 输出文件')
    run_parser.add_argument('--csv', type=str,
                            help='快照 CSV 输出文件')
    run_parser.set_defaults(func=cmd_run)

    config_parser = subparsers.add_parser('config', help='输出配置')
    config_parser.add_argument('--config', '-c', type=str,
                               help='在该 JSON 配置基础上输出')
    config_parser.add_argument('--output', '-o', type=str,
                               help='输出文件')
    config_parser.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except (ValueError, OSError) as e:
        logger.error(str(e))
        return 2


if __name__ == '__main__':
    sys.exit(main())
