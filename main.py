import sys

#-----------------------------------------------------------------------------

async def main() -> int:
    yaml_filenames: list[str] = []
    if len(sys.argv) > 1:
        yaml_filenames.extend(sys.argv[1:])
    else:
        print(f"Usage: python {sys.argv[0]} [config_files]\n")

    from healthdigest.utils import Config
    config = await Config.init(yaml_filenames=yaml_filenames, log_extra={"service": "healthdigest"})
    config.print()

    if not config.digest.export_file:
        print("HEALTH_EXPORT_FILE is not configured.")
        return 1

    from healthdigest.pulse import AppleHealthStore, HealthDigestService
    from healthdigest.pulse.core import HealthDataError

    try:
        store = AppleHealthStore.from_file(config.digest.export_file)
        service = HealthDigestService(store, config.digest)
        print(await service.aggregate_json(indent=2))

    except HealthDataError as e:
        print(e.user_message)
        return 1

    return 0

#-----------------------------------------------------------------------------

if __name__ == "__main__":
    import asyncio
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    sys.exit(asyncio.run(main()))

#-----------------------------------------------------------------------------
