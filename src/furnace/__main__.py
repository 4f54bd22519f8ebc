from furnace.cli import main

main()
