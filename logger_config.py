import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

import colorama

# 全局标志，控制是否禁用 colorama
_no_colorama = '--no_colorama' in sys.argv


def set_no_colorama(value: bool):
    """设置是否禁用 colorama"""
    global _no_colorama
    _no_colorama = value


def is_no_colorama() -> bool:
    """获取是否禁用 colorama"""
    return _no_colorama


# 👇 启用 colorama 以支持 Windows 颜色显示
if not _no_colorama:
    colorama.just_fix_windows_console()


# 彩色日志格式化器（仅在终端启用颜色）
class ColoredFormatter(logging.Formatter):
    COLORS = {
        'DEBUG': '\033[90m',      # 灰色
        'INFO': '\033[38;2;243;238;210m',  # 浅紫色 #f3eed2
        'SUCCESS': '\033[92m',    # 绿色
        'WARNING': '\033[93m',    # 黄色
        'ERROR': '\033[91m',      # 红色
        'CRITICAL': '\033[41m',   # 红底白字
        'WHITE': '\033[97m',      # 白色
        'SKY_BLUE': '\033[96m',   # 天蓝色
        'RESET': '\033[0m'
    }

    def __init__(self, fmt, datefmt=None, style='%'):
        super().__init__(fmt, datefmt, style)
        # 仅当输出到终端时启用颜色
        self.use_color = sys.stdout.isatty()

    def format(self, record):
        message = record.getMessage()
        asctime = self.formatTime(record, self.datefmt)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)

        if self.use_color:
            color = self.COLORS.get(record.levelname, self.COLORS['INFO'])
            white = self.COLORS['WHITE']
            reset = self.COLORS['RESET']
            # 月-日 时:分:秒（白色） [模块（颜色取决于level）] 正文
            formatted = f"{white}{asctime}{reset} {color}[{record.name}]{reset} {message}"
        else:
            formatted = f"{asctime} [{record.name}] {message}"

        if record.exc_text:
            formatted = f"{formatted}\n{record.exc_text}"
        return formatted


# 定义日志格式
LOG_FORMAT = '%(asctime)s %(name)s %(message)s'
DATE_FORMAT = '%m-%d %H:%M:%S'

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))

# 根日志器保持 DEBUG，具体级别由 get_logger 创建的日志器控制
logging.basicConfig(
    level=logging.DEBUG,
    handlers=[console_handler]
)

# 日志级别映射
LOG_LEVEL_MAP = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# 当前生效的日志级别，以及由 get_logger 创建过的日志器名称
_configured_level = logging.INFO
_project_loggers = set()
_file_handler: Optional[RotatingFileHandler] = None


def _configure_third_party_loggers():
    """抑制 asyncio 的 debug 日志"""
    logging.getLogger('asyncio').setLevel(logging.WARNING)


_configure_third_party_loggers()

# 注册 SUCCESS 名称（复用 INFO 级别值，仅改名）
logging.addLevelName(logging.INFO, 'SUCCESS')


# 为 Logger 类动态添加 .success() 方法
def success(self, message, *args, **kwargs):
    if self.isEnabledFor(logging.INFO):
        self._log(logging.INFO, message, args, **kwargs)


logging.Logger.success = success


def get_logger(name: str) -> logging.Logger:
    """
    获取指定名称的日志记录器，并应用配置的日志级别
    :param name: 日志记录器名称
    :return: 日志记录器实例
    """
    logger = logging.getLogger(name)
    logger.setLevel(_configured_level)
    _project_loggers.add(name)
    return logger


def configure_logging(config: Dict[str, Any]):
    """
    根据配置调整日志级别和文件输出
    :param config: load_config() 返回的配置字典
    """
    global _configured_level, _file_handler

    set_no_colorama(bool(config.get('no_colorama', False)))

    level_str = str(config.get('log_level', 'INFO')).upper()
    _configured_level = LOG_LEVEL_MAP.get(level_str, logging.INFO)
    for name in _project_loggers:
        logging.getLogger(name).setLevel(_configured_level)

    root_logger = logging.getLogger()
    if _file_handler is not None:
        root_logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    log_dir = config.get('log_dir')
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        # 文件处理器（无颜色，纯文本，轮转）
        _file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'app.log'),
            maxBytes=int(config.get('log_max_bytes', 1024 * 1024 * 5)),
            backupCount=int(config.get('log_backup_count', 5)),
            encoding='utf-8'
        )
        _file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root_logger.addHandler(_file_handler)


def log_exception(logger: logging.Logger, message: str, e: Exception, level: str = 'error', show_traceback: bool = False):
    """
    统一记录异常信息
    :param logger: 日志记录器
    :param message: 自定义消息
    :param e: 异常对象
    :param level: 日志级别 (debug/info/warning/error/critical)
    :param show_traceback: 是否显示完整堆栈跟踪，默认False避免控制台刷屏
    """
    log_func = getattr(logger, level.lower(), logger.error)  # 防止非法 level
    exc_info = (type(e), e, e.__traceback__) if show_traceback else False
    log_func(f"{message}: {type(e).__name__}: {str(e)}", exc_info=exc_info)


def print_colored_message(timestamp: str, location: str, sender: str, message: str):
    """
    打印彩色消息日志
    格式：时间（白色） [（蓝色）分类（白色）]（蓝色） 发送者（白色）：（黄色）消息（白色）
    :param timestamp: 时间戳，格式为 "MM-DD HH:MM:SS"
    :param location: 位置（消息分类）
    :param sender: 发送者
    :param message: 消息内容
    """
    if sys.stdout.isatty() and not _no_colorama:
        white = ColoredFormatter.COLORS['WHITE']
        blue = ColoredFormatter.COLORS['INFO']
        reset = ColoredFormatter.COLORS['RESET']

        output = f"{white}{timestamp}{reset} {blue}[{location}] {sender}：{reset}{white}{message}{reset}"
    else:
        output = f"{timestamp} [{location}] {sender}：{message}"

    print(output)
