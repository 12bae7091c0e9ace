from byteframe.cli import main

main()
