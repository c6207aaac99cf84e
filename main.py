#!/usr/bin/env python3
"""
Xcast Device Simulator - Main Entry Point

to run this against a box, eg:

CPE_HOST=127.0.0.1 python main.py --console
"""
import argparse
import asyncio
import logging
import sys

from config.settings import settings
from xcast_simulator.config.xcast_config import xcast_config
from xcast_simulator.user_interaction.simulator_service import XcastDeviceSimulator

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Xcast 远程应用生命周期模拟设备')
    parser.add_argument('--host', help='设备地址 (默认读取 CPE_HOST)')
    parser.add_argument('--immediate', action='store_true', help='即时响应模式，不模拟延迟')
    parser.add_argument('--console', action='store_true', help='启用操作员控制台')
    parser.add_argument('--api', action='store_true', help='启用检查API')
    return parser.parse_args(argv)


def main(argv=None):
    """启动模拟设备"""
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    overrides = {}
    if args.host:
        overrides["cpe_host"] = args.host
    if args.immediate:
        overrides["simulate_latency"] = False
    if args.console:
        overrides["console_enabled"] = True
    if args.api:
        overrides["api_enabled"] = True
    session_settings = settings.model_copy(update=overrides)

    if not session_settings.cpe_host:
        logger.error("provide some IP via CPE_HOST")
        sys.exit(1)

    simulator = XcastDeviceSimulator(session_settings, xcast_config)
    asyncio.run(simulator.run())


if __name__ == "__main__":
    main()
