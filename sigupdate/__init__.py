"""sigupdate: ClamAV signature database mirror updater.

Keeps a local directory of ClamAV signature files (``main.cvd``,
``daily.cvd``, ``bytecode.cvd``) in sync with a download mirror:
  - Incremental ``.cdiff`` patches are preferred over full downloads
  - Corrupt or unreadable local files fall back to a full download
  - A missing patch falls back to a full download of the base file
  - Too many outstanding patches force a full refresh of the base file
  - Conditional HEAD + GET transfers skip files that are already current
"""

__version__ = "0.2.0"
__author__ = "sigupdate contributors"
__description__ = "ClamAV signature database mirror updater"

from sigupdate.core.sync_run import run_sync, update_signatures

__all__ = ["run_sync", "update_signatures", "__version__"]
