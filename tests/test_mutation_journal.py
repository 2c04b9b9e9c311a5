import threading

from uhc.socketio_handlers.mutation_journal import CellPosition, CellSnapshot, ItemStack, MutationJournal


def test_first_write_wins():
    journal = MutationJournal()
    pos = CellPosition('world', 1, 64, 1)

    assert journal.record_if_absent(pos, lambda: CellSnapshot('STONE', 'minecraft:stone'))
    assert not journal.record_if_absent(pos, lambda: CellSnapshot('AIR', 'minecraft:air'))

    assert journal.get(pos).material == 'STONE'
    assert len(journal) == 1


def test_supplier_not_called_when_present():
    journal = MutationJournal()
    pos = CellPosition('world', 0, 0, 0)
    journal.record_if_absent(pos, lambda: CellSnapshot('DIRT', ''))
    calls = []

    def supplier():
        calls.append(1)
        return CellSnapshot('AIR', '')

    journal.record_if_absent(pos, supplier)
    assert calls == []


def test_drain_all_empties_journal():
    journal = MutationJournal()
    a = CellPosition('world', 1, 2, 3)
    b = CellPosition('world_nether', 1, 2, 3)
    journal.record_if_absent(a, lambda: CellSnapshot('STONE', ''))
    journal.record_if_absent(b, lambda: CellSnapshot('NETHERRACK', ''))

    drained = dict(journal.drain_all())

    assert set(drained) == {a, b}
    assert len(journal) == 0
    assert journal.drain_all() == []


def test_positions_differ_by_world():
    assert CellPosition('world', 1, 2, 3) != CellPosition('other', 1, 2, 3)
    assert CellPosition('world', 1, 2, 3) == CellPosition('world', 1, 2, 3)


def test_snapshot_from_payload_with_container():
    snapshot = CellSnapshot.from_payload({
        'type': 'CHEST',
        'data': 'minecraft:chest[facing=north]',
        'contents': [{'type': 'DIAMOND', 'amount': 3}, None],
    })

    assert snapshot.material == 'CHEST'
    assert snapshot.contents == (ItemStack('DIAMOND', 3), None)
    assert snapshot.contents_payload() == [{'type': 'DIAMOND', 'amount': 3, 'meta': None}, None]


def test_snapshot_from_payload_without_container():
    snapshot = CellSnapshot.from_payload({'type': 'GRASS_BLOCK'})
    assert snapshot.contents is None
    assert snapshot.block_data == ''


def test_concurrent_record_keeps_first_snapshot():
    journal = MutationJournal()
    pos = CellPosition('world', 7, 64, 7)
    workers = 16
    barrier = threading.Barrier(workers)
    supplied = []

    def worker(index):
        def supplier():
            supplied.append(index)
            return CellSnapshot(f"BLOCK_{index}", '')

        barrier.wait()
        journal.record_if_absent(pos, supplier)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(journal) == 1
    assert len(supplied) == 1
    assert journal.get(pos).material == f"BLOCK_{supplied[0]}"
