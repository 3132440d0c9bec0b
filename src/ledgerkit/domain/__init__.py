"""Domain layer for ledgerkit.

Services are imported from their modules (``ledgerkit.domain.statement`` and
so on); importing them here would create an import cycle with
``ledgerkit.database.base``.
"""
