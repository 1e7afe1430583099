"""Property test: mirror reconciliation converges and never deletes.

Runs the reconciler against the in-memory sheet book:

* a second pass over an unchanged ledger appends nothing and leaves the
  sheet identical;
* remote rows without a local counterpart survive any pass.
"""

import pytest
from hypothesis import given, settings, strategies as st

from tradelog.mirror.memory import InMemorySheetBook
from tradelog.reconciliation.mirror import MirrorReconciler

from factories import make_trade

SID = "prop-sheet"

trade_ids = st.lists(
    st.integers(min_value=1, max_value=10**13), unique=True, max_size=8,
)


def _trades(ids, asset="WIN"):
    return [make_trade(i, asset=asset, trade_number=n + 1) for n, i in enumerate(ids)]


@given(ids=trade_ids)
@settings(max_examples=50)
@pytest.mark.asyncio
async def test_second_pass_is_a_no_op(ids):
    book = InMemorySheetBook()
    book.create_spreadsheet(SID)
    reconciler = MirrorReconciler(book, SID)
    trades = _trades(ids)

    await reconciler.reconcile(trades)
    first = book.grid(SID, "Trades")
    outcome = await reconciler.reconcile(trades)

    assert outcome.appended == 0
    assert outcome.updated == len(trades)
    assert book.grid(SID, "Trades") == first
    assert len(first) == len(trades) + 1


@given(ids=trade_ids, keep=st.integers(min_value=0, max_value=8))
@settings(max_examples=50)
@pytest.mark.asyncio
async def test_remote_rows_are_never_removed(ids, keep):
    book = InMemorySheetBook()
    book.create_spreadsheet(SID)
    reconciler = MirrorReconciler(book, SID)
    trades = _trades(ids)
    await reconciler.reconcile(trades)

    # Local ledger lost some trades and edited the rest
    survivors = [make_trade(t.id, asset="WDO", trade_number=t.trade_number) for t in trades[:keep]]
    await reconciler.reconcile(survivors)

    grid = book.grid(SID, "Trades")
    assert [row[0] for row in grid[1:]] == [str(i) for i in ids]
    assert all(row[1] == "WDO" for row in grid[1:keep + 1])
    assert all(row[1] == "WIN" for row in grid[keep + 1:])
