# bot.py
# 控制台入口：读取包含多个节的 XML 文件，逐个送入管道并打印消息分类

import argparse
import sys
from datetime import datetime
from typing import List, Optional

from core.config_manager import load_config
from core.exceptions import StanzaParseError
from core.message_category import MessageCategory
from core.message_pipeline import MessagePipeline
from core.stanza import Stanza, parse_stanzas
from handlers.message_handler import message, MessageSubscriptions
from logger_config import get_logger, configure_logging, log_exception, print_colored_message

logger = get_logger("Bot")


def _printer(category: MessageCategory):
    def print_stanza(stanza: Stanza):
        timestamp = datetime.now().strftime('%m-%d %H:%M:%S')
        sender = stanza.attr('from') or 'unknown'
        body = stanza.text_of('body') or ''
        print_colored_message(timestamp, category.value, sender, body)
    print_stanza.__qualname__ = f"print_{category.value}"
    return print_stanza


def setup_printers(handler: MessageSubscriptions):
    """为每个已知分类订阅一个控制台打印函数"""
    for category in MessageCategory:
        handler.on(category, _printer(category))


def build_pipeline() -> MessagePipeline:
    pipeline = MessagePipeline()
    pipeline.use(message(setup_printers))
    return pipeline


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify XMPP message stanzas from an XML file")
    parser.add_argument('file', help="XML 文件，根元素下包含若干个节")
    parser.add_argument('--config', default='config.yml', help="配置文件路径")
    parser.add_argument('--no_colorama', action='store_true', help="禁用 colorama")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    config = load_config(args.config)
    if args.no_colorama:
        config['no_colorama'] = True
    configure_logging(config)

    try:
        with open(args.file, 'r', encoding='utf-8') as f:
            stanzas = parse_stanzas(f.read())
    except OSError as e:
        log_exception(logger, f"无法读取文件 {args.file}", e)
        return 1
    except StanzaParseError as e:
        log_exception(logger, f"解析文件 {args.file} 失败", e)
        return 1

    pipeline = build_pipeline()
    for stanza in stanzas:
        pipeline.process(stanza)

    logger.success(f"共处理 {len(stanzas)} 个节")
    return 0


if __name__ == "__main__":
    sys.exit(main())
