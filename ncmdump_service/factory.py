"""Wiring of the queue core to the NCM adapters."""

from ncmdump_service.ncm.dump import dump
from ncmdump_service.ncm.scan import enumerate_ncm_files
from ncmdump_service.queue.controller import QueueController
from ncmdump_service.queue.ports import DialogHost, FileFilter
from ncmdump_service.settings import settings


def ncm_file_filter() -> FileFilter:
    return FileFilter(settings.picker_filter_name, (settings.ncm_extension,))


def build_controller(dialogs: DialogHost) -> QueueController:
    return QueueController(
        enumerate_path=enumerate_ncm_files,
        dump=dump,
        dialogs=dialogs,
        file_filter=ncm_file_filter(),
        completion_message=settings.completion_message,
        completion_title=settings.completion_title,
    )
