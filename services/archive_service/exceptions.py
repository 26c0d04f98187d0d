class ArchiveInProgressError(Exception):
    """Another archive run for the same date is still in flight."""

    def __init__(self, archive_date: str):
        self.archive_date = archive_date
        super().__init__(f"Archive for {archive_date} is already running")
