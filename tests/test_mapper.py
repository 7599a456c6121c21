from monitorspaces.mapping.mapper import DEFAULT_WORKSPACE, WorkspaceMapper


def test_unmapped_monitor_shows_default_workspace():
    mapper = WorkspaceMapper()
    assert mapper.get_workspace_for_monitor(3) == DEFAULT_WORKSPACE
    assert not mapper.has_monitor(3)


def test_lookup_in_both_directions():
    mapper = WorkspaceMapper()
    mapper.set_mapping(0, 4)
    mapper.set_mapping(1, 7)

    assert mapper.get_workspace_for_monitor(1) == 7
    assert mapper.get_monitor_for_workspace(4) == 0
    assert mapper.get_monitor_for_workspace(9) is None
    assert mapper.is_displayed(7)
    assert not mapper.is_displayed(9)
    assert mapper.displayed_workspaces() == [4, 7]


def test_all_mappings_is_a_snapshot():
    mapper = WorkspaceMapper()
    mapper.set_mapping(0, 1)
    snapshot = mapper.all_mappings()
    mapper.set_mapping(0, 2)
    assert snapshot == {0: 1}


def test_swap_twice_restores_the_map():
    mapper = WorkspaceMapper()
    mapper.set_mapping(0, 0)
    mapper.set_mapping(1, 5)
    before = mapper.all_mappings()

    mapper.swap(0, 1)
    assert mapper.all_mappings() == {0: 5, 1: 0}
    mapper.swap(0, 1)
    assert mapper.all_mappings() == before


def test_consistency_detects_duplicates():
    mapper = WorkspaceMapper()
    mapper.set_mapping(0, 2)
    mapper.set_mapping(1, 3)
    assert mapper.is_consistent()

    mapper.set_mapping(1, 2)
    assert not mapper.is_consistent()
    assert "duplicado" in mapper.dump_state()


def test_dump_state_lists_displayed_workspaces():
    mapper = WorkspaceMapper()
    mapper.set_mapping(0, 5)
    mapper.set_mapping(1, 2)
    assert "Visibles: [2, 5]" in mapper.dump_state()


def test_clear():
    mapper = WorkspaceMapper()
    mapper.set_mapping(0, 1)
    mapper.set_mapping(1, 2)
    assert len(mapper) == 2
    mapper.clear()
    assert len(mapper) == 0
    assert str(mapper) == "[]"
