import asyncio
import json
import tempfile
from pathlib import Path

from fluxstate import (
    Flux,
    FluxPersist,
    JsonFileBackend,
    PersistConfig,
    get_registry,
)

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Defining a flux")
print("-" * 100)
print()

counter = Flux(0, key="counter", on_init=lambda: print("counter created"))

subscription = counter.subscribe(lambda value: print(f"Counter changed to: {value}"))
counter.value = 1
counter.update(lambda v: v + 1)

print(f"History: {counter.history}")

# Revert re-emits an older value without growing the history.
counter.revert(0)
print(f"After revert: value={counter.value}, history={counter.history}")

subscription.cancel()
counter.value = 10  # No longer printed

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Derived values")
print("-" * 100)
print()

doubled = counter.derive(lambda v: v * 2)
doubled.subscribe(lambda value: print(f"Doubled is now: {value}"))
counter.value = 21

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Services")
print("-" * 100)
print()


class User:
    def __init__(self, name, age):
        self.name = name
        self.age = age

    def to_json(self):
        return json.dumps({"name": self.name, "age": self.age})

    @staticmethod
    def from_json(text):
        data = json.loads(text)
        return User(data["name"], data["age"])


class AuthService:
    def __init__(self):
        self.user = Flux(User("Guest", 0), key="user")

    def login(self, name):
        self.user.value = User(name, 25)


auth = get_registry().inject(AuthService())
auth.user.subscribe(lambda user: print(f"Logged in as {user.name}"))
get_registry().find(AuthService).login("Alice")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Persistence")
print("-" * 100)
print()


async def persist_demo(directory: Path):
    persist = FluxPersist(
        JsonFileBackend(directory / "prefs.json"),
        PersistConfig(documents_dir=directory),
    )
    # Obfuscation only, not encryption
    persist.init_encryption("my_secure_key_32_bytes_long")

    await persist.save(counter, "counter", batch=True)
    await persist.save(auth.user, "user", serialize=User.to_json, encrypt=True)
    await persist.save_to_file(counter, "counter.txt")
    await persist.flush()

    print(f"Stored: {(directory / 'prefs.json').read_text()}")

    restored_counter = Flux(0)
    restored_user = Flux(User("Guest", 0))
    await persist.load(restored_counter, "counter", use_cache=False)
    await persist.load(
        restored_user, "user", deserialize=User.from_json, decrypt=True, use_cache=False
    )
    print(f"Restored counter={restored_counter.value}, user={restored_user.value.name}")

    from_file = Flux(0)
    await persist.load_from_file(from_file, "counter.txt")
    print(f"Counter from file: {from_file.value}")


with tempfile.TemporaryDirectory() as tmp:
    asyncio.run(persist_demo(Path(tmp)))

counter.dispose()
