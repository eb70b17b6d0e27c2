from storeflux import ActionType, Runtime, collect_dependencies, DependencySet, track
from storeflux.devtools import print_events


class TodoStore:
    def __init__(self):
        self.items = []
        self.filter = "all"

    def add(self, title):
        self.items = self.items + [title]

    def set_filter(self, value):
        self.filter = value


runtime = Runtime()
todos = TodoStore()
runtime.register(todos)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Turning methods into actions")
print("-" * 100)
print()

# Every call of an installed action records a DISPATCH event and flushes once.
runtime.install_action(TodoStore, "add")
runtime.install_action(TodoStore, "set_filter")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Selecting single properties")
print("-" * 100)
print()

selector = runtime.select(todos)
items_subscription = selector.items.subscribe(lambda items: print(f"Items: {items}"))
filter_subscription = selector.filter.subscribe(lambda value: print(f"Filter: {value}"))

todos.add("write docs")  # Items change, filter stream stays quiet
todos.set_filter("all")  # Same value, nothing is printed
todos.set_filter("done")  # Filter: done

filter_subscription.unsubscribe()
todos.set_filter("all")  # No longer printed

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Selecting the whole store")
print("-" * 100)
print()

whole = runtime.select_store(todos).subscribe(
    lambda store: print(f"Store changed: {len(store.items)} items, filter={store.filter}")
)

todos.add("ship release")
runtime.dispatch(ActionType.NEXT, todos, "ping")  # nothing changed, nothing printed

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Tracked reads")
print("-" * 100)
print()

deps = DependencySet()
with collect_dependencies(deps):
    visible = track(todos).items
    print(f"Visible items: {len(visible)}")

print(f"Read keys: {deps.keys_for(todos)}")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Event log")
print("-" * 100)
print()

print_events(runtime)

items_subscription.unsubscribe()
whole.unsubscribe()
runtime.close()
